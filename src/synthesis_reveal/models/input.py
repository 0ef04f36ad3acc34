"""
Input Message Schema
====================

This module defines the Pydantic model for capture requests posted to the service.

Input Contract:
    {
        "image": "<base64 JPEG or PNG, optional data URL prefix>"  (optional)
    }

Example:
    from synthesis_reveal.models.input import CaptureRequest

    request = CaptureRequest.model_validate_json(raw)
    image_bytes = decode_base64(request.image)
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CaptureRequest(BaseModel):
    """
    Schema for a capture posted by the presentation layer.

    Attributes:
        image: Base64-encoded still from the live source
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "image": "/9j/4AAQSkZJRg...",
            }
        }
    )

    image: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Base64-encoded image (JPEG or PNG); omit to reuse the last one",
    )
