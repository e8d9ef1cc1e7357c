from __future__ import annotations

from typing import Dict, Iterable, List

from .models import ActiveQuestion, Answer, QuizQuestion, User
from .schemas import PollResults, QuestionResults, QuizResults, Standing
from .utils import sort_standings


def tally_votes(active: ActiveQuestion) -> List[int]:
    votes = [0] * len(active.question.options)
    for ans in active.answers.values():
        votes[ans.option_index] += 1
    return votes


def earned_points(question: QuizQuestion, answer: Answer) -> float:
    """Points for a correct answer, decayed by how long the user took."""
    elapsed_seconds = answer.submitted_at_offset_ms / 1000
    return max(0, question.starting_points - elapsed_seconds * question.decay_rate_per_second)


def standings(users: Iterable[User]) -> List[Standing]:
    return [Standing(username=u.username, points=u.points) for u in sort_standings(users)]


def score_question(active: ActiveQuestion, users: Dict[str, User]) -> Dict[str, QuestionResults]:
    """Build the results each user receives when a question closes.

    Poll questions leave points alone and every user gets the same results
    object. Quiz questions update ``User.points`` in place: a correct answer
    adds the decayed bonus, a wrong one subtracts the penalty (never below
    zero), no answer changes nothing. Each quiz result carries the
    recipient's own score for this question plus the shared standings.
    """
    question = active.question
    votes = tally_votes(active)

    if question.kind == "poll":
        shared = PollResults(
            question=question.prompt,
            answers=list(question.options),
            votes=votes,
            total_votes=len(active.answers),
        )
        return {username: shared for username in users}

    awards: Dict[str, float] = {}
    for username, ans in active.answers.items():
        user = users.get(username)
        if user is None:
            continue

        if ans.option_index == question.correct_option:
            earned = earned_points(question, ans)
            user.points += earned
            awards[username] = earned
        else:
            user.points = max(0, user.points - question.wrong_answer_penalty)
            awards[username] = -question.wrong_answer_penalty

    # standings are taken after every point update has been applied
    table = standings(users.values())
    return {
        username: QuizResults(
            question=question.prompt,
            answers=list(question.options),
            correct_answer=question.correct_option,
            votes=votes,
            user_score=awards.get(username, 0),
            standings=table,
        )
        for username in users
    }
