from pydantic import BaseModel, Field, ConfigDict

class SearchResponse(BaseModel):
    version: str = Field(..., description="Service version")
    count: int = Field(..., description="Number of corpus lines matching the query")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "version": "1.0.0",
                "count": 42
            }
        }
    )

class HealthResponse(BaseModel):
    status: str
    version: str
    service: str
