from pydantic import BaseModel, Field
from typing import Any, List, Optional

class AnalyzeRequest(BaseModel):
    store_url: str = Field(..., min_length=1)
    session_id: Optional[str] = None
    limit: Optional[int] = None

class AnalysisResult(BaseModel):
    session_id: str
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None

class SingleAnalysisResponse(BaseModel):
    success: bool = True
    session_id: str
    analysis: Optional[Any] = None
    message: str = "Session analyzed successfully"

class BatchAnalysisResponse(BaseModel):
    success: bool = True
    analyzed_count: int
    failed_count: int = 0
    total_sessions: int
    results: List[AnalysisResult] = []
    message: str
