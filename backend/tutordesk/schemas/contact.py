"""Contact form schemas."""

from pydantic import BaseModel, ConfigDict, Field

from tutordesk.schemas.inquiries import EMAIL_PATTERN


class ContactRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN)
    subject: str = Field(..., min_length=5, max_length=200)
    message: str = Field(..., min_length=10, max_length=2000)


class ContactResponse(BaseModel):
    message: str = "Message sent successfully! We'll get back to you within 24 hours."
