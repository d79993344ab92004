from pydantic import BaseModel, ConfigDict


class UploadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    filename: str
    original_name: str
    mimetype: str
    size: int
    url: str
