from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# =========================
# QUERY
# =========================
class QueryOptions(BaseModel):
    limit: Optional[int] = Field(default=None, ge=1)
    timeout_ms: Optional[int] = Field(default=None, alias="timeoutMs", ge=1)

    model_config = ConfigDict(populate_by_name=True)


class QueryRequest(BaseModel):
    template_id: Optional[str] = Field(default=None, alias="templateId")
    custom_sql: Optional[str] = Field(default=None, alias="customSql")
    options: QueryOptions = Field(default_factory=QueryOptions)

    model_config = ConfigDict(populate_by_name=True)


# =========================
# CHAT
# =========================
class Turn(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: Optional[str] = None


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    conversation_history: List[Turn] = Field(default_factory=list, alias="conversationHistory")
    last_query_result: Optional[Dict[str, Any]] = Field(default=None, alias="lastQueryResult")
    last_sql_query: Optional[str] = Field(default=None, alias="lastSqlQuery")

    model_config = ConfigDict(populate_by_name=True)


# =========================
# EXPORT
# =========================
class ExportRequest(BaseModel):
    rows: List[Dict[str, Any]] = Field(default_factory=list)
