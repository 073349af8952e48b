from pydantic import AfterValidator, AliasChoices, BaseModel, Field
from typing import Annotated, Any, Dict, List, Optional, Union

# Collections: "lessons" and "orders"


def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be blank")
    return v


Text = Annotated[str, AfterValidator(_not_blank)]

# Largest integer BSON can store
MAX_INT = 2**63 - 1


class LessonIn(BaseModel):
    subject: Text = Field(..., description="Lesson subject")
    location: Text = Field(..., description="Where the lesson takes place")
    price: float = Field(..., ge=0, description="Price per space")
    spaces: int = Field(..., ge=0, le=MAX_INT, description="Remaining spaces")
    image: Text = Field(..., description="Image path or URL")
    # Older clients still send this; spaces is the stock counter
    availableInventory: Optional[int] = Field(None, ge=0, le=MAX_INT)


class LessonUpdate(BaseModel):
    subject: Text
    spaces: int = Field(..., ge=0, le=MAX_INT)
    location: Optional[Text] = None
    price: Optional[float] = Field(None, ge=0)
    image: Optional[Text] = None
    availableInventory: Optional[int] = Field(None, ge=0, le=MAX_INT)


class LessonOut(BaseModel):
    id: str
    subject: str
    location: Optional[str] = None
    price: Optional[float] = None
    spaces: int = 0
    image: Optional[str] = None
    availableInventory: int = 0


class CartItem(BaseModel):
    lessonId: str = Field(..., validation_alias=AliasChoices("lessonId", "id", "_id"))
    quantity: int = Field(..., ge=1, le=MAX_INT)


class CreateOrder(BaseModel):
    orderDetails: Dict[str, Any] = Field(default_factory=dict)
    cartItems: List[CartItem] = Field(default_factory=list)


class LegacyOrder(BaseModel):
    cartItems: List[CartItem] = Field(default_factory=list)


LegacyOrderBody = Union[List[CartItem], LegacyOrder]


class OrderOut(BaseModel):
    message: str
    orderId: str


class LessonCreated(BaseModel):
    message: str
    id: str


class Message(BaseModel):
    message: str
