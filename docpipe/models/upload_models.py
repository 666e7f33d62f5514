"""
docpipe/models/upload_models.py

Pydantic DTOs for the upload flow.
The request has no DTO; the controller parses multipart/form-data itself;
only the response shape is defined here.
"""

from pydantic import BaseModel


class UploadResponse(BaseModel):
    """
    Successful response for POST /upload/.

        {
            "success": true,
            "url": "https://f000.backblazeb2.com/file/site-docs/damage-reports/3f0c…-crack.jpg",
            "file_name": "damage-reports/3f0c…-crack.jpg"
        }
    """

    success: bool = True
    url: str
    file_name: str
