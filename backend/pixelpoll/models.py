from typing import Annotated, Dict, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Field aliases are the names the browser client puts on the wire.


class _QuestionBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prompt: str = Field(alias="question")
    options: Tuple[str, ...] = Field(alias="answers", min_length=2)


class PollQuestion(_QuestionBase):
    kind: Literal["poll"] = Field(default="poll", alias="type")


class QuizQuestion(_QuestionBase):
    kind: Literal["quiz"] = Field(default="quiz", alias="type")
    correct_option: int = Field(alias="correctAnswer", ge=0)
    starting_points: float = Field(alias="startingPoints", ge=0, allow_inf_nan=False)
    decay_rate_per_second: float = Field(alias="decayRate", ge=0, allow_inf_nan=False)
    wrong_answer_penalty: float = Field(alias="negativePoints", ge=0, allow_inf_nan=False)

    @model_validator(mode="after")
    def _correct_option_in_range(self) -> "QuizQuestion":
        if self.correct_option >= len(self.options):
            raise ValueError("correctAnswer must index one of the answers")
        return self


AnyQuestion = Union[PollQuestion, QuizQuestion]

# tagged by the "type" key when parsed off the wire
Question = Annotated[AnyQuestion, Field(discriminator="kind")]


class User(BaseModel):
    username: str
    points: float = 0
    is_creator: bool = False
    connected: bool = True


class Answer(BaseModel):
    username: str
    option_index: int
    submitted_at_offset_ms: float  # relative to ActiveQuestion.started_at


class ActiveQuestion(BaseModel):
    question: AnyQuestion
    started_at: float  # epoch seconds
    answers: Dict[str, Answer] = Field(default_factory=dict)
