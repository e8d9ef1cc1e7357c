from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from .models import AnyQuestion, Question


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# Pre-flight checks


class RoomAvailabilityOut(WireModel):
    available: bool
    reason: Optional[str] = None


class RoomJoinabilityOut(WireModel):
    eligible: bool
    reason: Optional[str] = None


class JoinResult(WireModel):
    is_creator: bool


# Results


class Standing(WireModel):
    username: str
    points: float


class PollResults(WireModel):
    type: Literal["poll"] = "poll"
    question: str
    answers: List[str]
    votes: List[int]
    total_votes: int


class QuizResults(WireModel):
    type: Literal["quiz"] = "quiz"
    question: str
    answers: List[str]
    correct_answer: int
    votes: List[int]
    user_score: float
    standings: List[Standing]


QuestionResults = Union[PollResults, QuizResults]


# Client -> server


class StartQuestionIn(WireModel):
    type: Literal["StartQuestion"]
    question: Question


class SubmitAnswerIn(WireModel):
    type: Literal["SubmitAnswer"]
    option_index: int = Field(alias="answer")


class EndQuestionIn(WireModel):
    type: Literal["EndQuestion"]


class EndRoomIn(WireModel):
    type: Literal["EndRoom"]


ClientMessage = Annotated[
    Union[StartQuestionIn, SubmitAnswerIn, EndQuestionIn, EndRoomIn],
    Field(discriminator="type"),
]

client_message_adapter = TypeAdapter(ClientMessage)


# Server -> client


class JoinErrorOut(WireModel):
    type: Literal["JoinError"] = "JoinError"
    reason: str


class UserInfoOut(WireModel):
    type: Literal["UserInfo"] = "UserInfo"
    username: str
    is_creator: bool
    current_users: List[str]


class UserJoinedOut(WireModel):
    type: Literal["UserJoined"] = "UserJoined"
    username: str


class UserLeftOut(WireModel):
    type: Literal["UserLeft"] = "UserLeft"
    username: str


class QuestionStartedOut(WireModel):
    type: Literal["QuestionStarted"] = "QuestionStarted"
    question: AnyQuestion


class QuestionEndedOut(WireModel):
    type: Literal["QuestionEnded"] = "QuestionEnded"
    results: QuestionResults


class RoomEndedOut(WireModel):
    type: Literal["RoomEnded"] = "RoomEnded"
    reason: str
    standings: List[Standing]


class ErrorOut(WireModel):
    type: Literal["Error"] = "Error"
    reason: str
    message: str
