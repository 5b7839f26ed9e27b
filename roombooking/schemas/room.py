from pydantic import BaseModel, ConfigDict


class RoomResponse(BaseModel):
    id: str
    name: str
    description: str
    capacity: int

    model_config = ConfigDict(from_attributes=True)
