from typing import Optional

from pydantic import BaseModel, Field


class ImportResult(BaseModel):
    message: str
    records_imported: int = Field(..., ge=0)
    start_date: Optional[str] = Field(None, description="YYYY-MM-DD")
    end_date: Optional[str] = Field(None, description="YYYY-MM-DD")
