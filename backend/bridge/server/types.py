from pydantic import BaseModel, ConfigDict, Field


class UpdateDataRequest(BaseModel):
    """Body of a push from the browser bridge: the two raw localStorage strings."""

    model_config = ConfigDict(populate_by_name=True)

    game_data: str = Field(alias="gameData")
    saves_data: str = Field(alias="savesData")
