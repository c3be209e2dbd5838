from pydantic import BaseModel

from evalq.core.state import JobStatus


class Job(BaseModel):
    id: str
    name: str
    payload: str
    timestamp: str = ""
    status: JobStatus = JobStatus.PENDING
    score: float = 0.0


class Verdict(BaseModel):
    status: JobStatus
    score: float
    error_kind: str | None = None
