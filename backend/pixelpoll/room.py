from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from . import scoring
from .errors import InvalidRequest, NotCreator, StateConflict
from .models import ActiveQuestion, Answer, Question, User
from .schemas import QuestionResults, Standing
from .utils import now_ts


# States: idle (active_question is None) <-> question open
class Room(BaseModel):
    name: str
    users: Dict[str, User] = Field(default_factory=dict)
    active_question: Optional[ActiveQuestion] = None

    def is_creator(self, username: str) -> bool:
        user = self.users.get(username)
        return user is not None and user.is_creator

    def require_creator(self, username: str, action: str) -> None:
        if not self.is_creator(username):
            raise NotCreator(f"Only the room creator can {action}")

    def connected_users(self) -> List[str]:
        return [u.username for u in self.users.values() if u.connected]

    def standings(self) -> List[Standing]:
        return scoring.standings(self.users.values())

    def join(self, username: str) -> User:
        """Add a user, or bring a disconnected one back with its points intact.

        The first user to join a room is its creator for the room's lifetime.
        """
        user = self.users.get(username)
        if user is None:
            user = User(username=username, is_creator=not self.users)
            self.users[username] = user
        else:
            user.connected = True
        return user

    def disconnect(self, username: str) -> Optional[User]:
        user = self.users.get(username)
        if user is not None:
            user.connected = False
        return user

    def start_question(self, username: str, question: Question, at: Optional[float] = None) -> ActiveQuestion:
        self.require_creator(username, "start questions")
        if self.active_question is not None:
            raise StateConflict("A question is already open", reason="question-open")

        self.active_question = ActiveQuestion(
            question=question,
            started_at=now_ts() if at is None else at,
        )
        return self.active_question

    def submit_answer(self, username: str, option_index: int, at: Optional[float] = None) -> Answer:
        active = self.active_question
        if active is None:
            raise StateConflict("No question is open", reason="no-active-question")
        if username not in self.users:
            raise InvalidRequest(f"{username!r} is not in this room", reason="unknown-user")
        if not 0 <= option_index < len(active.question.options):
            raise InvalidRequest(f"Answer {option_index} is out of range", reason="invalid-answer")

        submitted = now_ts() if at is None else at
        answer = Answer(
            username=username,
            option_index=option_index,
            submitted_at_offset_ms=max(0.0, (submitted - active.started_at) * 1000),
        )
        # a resubmission replaces both the choice and the timestamp
        active.answers[username] = answer
        return answer

    def end_question(self, username: str) -> Optional[Dict[str, QuestionResults]]:
        """Close the open question and return each user's results.

        Returns ``None`` when there is nothing to end.
        """
        self.require_creator(username, "end questions")
        active = self.active_question
        if active is None:
            return None

        results = scoring.score_question(active, self.users)
        self.active_question = None
        return results

    def finish(self, username: str) -> List[Standing]:
        self.require_creator(username, "end the room")
        self.active_question = None
        return self.standings()
