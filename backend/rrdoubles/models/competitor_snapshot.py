from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


class CompetitorSnapshot(SQLModel, table=True):
    """Key-value snapshot of a roster list (teams or players); schedules are never stored"""

    key: str = Field(primary_key=True)
    payload: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})
