from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Confirmation envelope for writes that return no entity."""

    message: str
    success: bool = True
