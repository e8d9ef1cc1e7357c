from __future__ import annotations

from unittest import TestCase

from backend.pixelpoll.errors import InvalidRequest, NotCreator, StateConflict
from backend.pixelpoll.models import PollQuestion, QuizQuestion
from backend.pixelpoll.room import Room

QUIZ = QuizQuestion(
    prompt="Largest planet?",
    options=("Mars", "Jupiter", "Venus"),
    correct_option=1,
    starting_points=1000,
    decay_rate_per_second=10,
    wrong_answer_penalty=200,
)
POLL = PollQuestion(prompt="Lunch?", options=("Pizza", "Tacos"))


def _room(*names: str) -> Room:
    room = Room(name="trivia")
    for name in names:
        room.join(name)
    return room


class MembershipTests(TestCase):
    def test_first_user_to_join_is_the_only_creator(self):
        room = _room("alice", "bob", "carol")

        self.assertEqual([u.username for u in room.users.values() if u.is_creator], ["alice"])

    def test_creator_does_not_change_across_disconnects(self):
        room = _room("alice", "bob")

        room.disconnect("alice")
        room.join("carol")
        room.join("alice")

        self.assertTrue(room.is_creator("alice"))
        self.assertFalse(room.is_creator("carol"))
        self.assertEqual(sum(u.is_creator for u in room.users.values()), 1)

    def test_rejoining_restores_points_and_role(self):
        room = _room("alice", "bob")
        room.users["bob"].points = 320

        room.disconnect("bob")
        self.assertFalse(room.users["bob"].connected)
        user = room.join("bob")

        self.assertIs(user, room.users["bob"])
        self.assertTrue(user.connected)
        self.assertEqual(user.points, 320)
        self.assertFalse(user.is_creator)

    def test_connected_users_keep_join_order(self):
        room = _room("alice", "bob", "carol")
        room.disconnect("bob")

        self.assertEqual(room.connected_users(), ["alice", "carol"])

    def test_disconnecting_unknown_user_is_a_no_op(self):
        room = _room("alice")

        self.assertIsNone(room.disconnect("zed"))
        self.assertEqual(list(room.users), ["alice"])


class QuestionLifecycleTests(TestCase):
    def setUp(self) -> None:
        self.room = _room("alice", "bob", "carol")

    def test_only_the_creator_can_start_a_question(self):
        with self.assertRaises(NotCreator):
            self.room.start_question("bob", QUIZ)

        self.assertIsNone(self.room.active_question)

    def test_second_question_is_rejected_while_one_is_open(self):
        self.room.start_question("alice", QUIZ, at=10)

        with self.assertRaises(StateConflict) as ctx:
            self.room.start_question("alice", POLL, at=11)

        self.assertEqual(ctx.exception.reason, "question-open")
        self.assertEqual(self.room.active_question.question, QUIZ)
        self.assertEqual(self.room.active_question.started_at, 10)

    def test_submit_requires_an_open_question(self):
        with self.assertRaises(StateConflict):
            self.room.submit_answer("bob", 0)

    def test_submit_rejects_out_of_range_options(self):
        self.room.start_question("alice", QUIZ, at=0)

        for index in (-1, 3):
            with self.assertRaises(InvalidRequest):
                self.room.submit_answer("bob", index, at=1)

        self.assertEqual(self.room.active_question.answers, {})

    def test_submit_rejects_users_outside_the_room(self):
        self.room.start_question("alice", QUIZ, at=0)

        with self.assertRaises(InvalidRequest):
            self.room.submit_answer("mallory", 1, at=1)

    def test_resubmission_replaces_choice_and_time(self):
        self.room.start_question("alice", QUIZ, at=100)
        self.room.submit_answer("bob", 0, at=101)
        self.room.submit_answer("bob", 1, at=104)

        answer = self.room.active_question.answers["bob"]
        self.assertEqual(answer.option_index, 1)
        self.assertEqual(answer.submitted_at_offset_ms, 4000)

        results = self.room.end_question("alice")
        self.assertEqual(results["bob"].votes, [0, 1, 0])
        self.assertEqual(self.room.users["bob"].points, 960)

    def test_decay_is_measured_from_question_start(self):
        self.room.start_question("alice", QUIZ, at=50)
        self.room.submit_answer("bob", 1, at=55)
        self.room.submit_answer("carol", 1, at=200)

        self.room.end_question("alice")

        self.assertEqual(self.room.users["bob"].points, 950)
        self.assertEqual(self.room.users["carol"].points, 0)

    def test_end_question_returns_results_for_every_user_and_goes_idle(self):
        self.room.start_question("alice", POLL, at=0)
        self.room.submit_answer("carol", 0, at=1)

        results = self.room.end_question("alice")

        self.assertEqual(set(results), {"alice", "bob", "carol"})
        self.assertIsNone(self.room.active_question)
        # idle again, so a new question may start
        self.room.start_question("alice", QUIZ, at=5)

    def test_end_question_with_nothing_open_signals_nothing_to_end(self):
        self.assertIsNone(self.room.end_question("alice"))
        self.assertIsNone(self.room.end_question("alice"))

    def test_non_creator_actions_leave_state_unchanged(self):
        self.room.start_question("alice", QUIZ, at=0)
        self.room.submit_answer("bob", 1, at=2)
        before = self.room.model_dump()

        with self.assertRaises(NotCreator):
            self.room.end_question("bob")
        with self.assertRaises(NotCreator):
            self.room.start_question("carol", POLL)
        with self.assertRaises(NotCreator):
            self.room.finish("bob")

        self.assertEqual(self.room.model_dump(), before)

    def test_finish_discards_open_question_and_returns_standings(self):
        self.room.users["carol"].points = 50
        self.room.start_question("alice", QUIZ, at=0)

        final = self.room.finish("alice")

        self.assertIsNone(self.room.active_question)
        self.assertEqual([s.username for s in final], ["carol", "alice", "bob"])
