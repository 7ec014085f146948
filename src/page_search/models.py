from pydantic import BaseModel, Field, TypeAdapter
from typing import Annotated, Literal, TypeAlias, Union

SearchMode: TypeAlias = Literal["semantic", "exact", "fuzzy"]
SessionState: TypeAlias = Literal["idle", "running", "completed", "cancelled", "failed"]


# ---------------------------------------------------------------------------
# Worker protocol
# ---------------------------------------------------------------------------


class ChunkPayload(BaseModel):
    """Serializable view of a chunk sent to the worker"""

    index: int = Field(description="Ordinal position of the chunk in the document")
    text: str = Field(description="Concatenated chunk text")
    units: list[str] = Field(description="Text of every unit in the chunk, in order")


class MatchPayload(BaseModel):
    """Serializable view of a match returned by the worker"""

    chunk_index: int = Field(description="Index of the matched chunk")
    score: float = Field(description="Match score")
    unit_positions: list[int] = Field(description="Positions of the units responsible for the hit")


class InitMessage(BaseModel):
    """Ask the worker to load the embedding table"""

    type: Literal["INIT"] = "INIT"
    resource_locator: str = Field(description="Path of the embeddings payload")


class SearchMessage(BaseModel):
    """Ask the worker to match a batch of chunks"""

    type: Literal["SEARCH"] = "SEARCH"
    query: str
    mode: SearchMode = "semantic"
    chunks: list[ChunkPayload] = Field(default_factory=list)


class ShutdownMessage(BaseModel):
    """Stop the worker loop"""

    type: Literal["SHUTDOWN"] = "SHUTDOWN"


class InitCompleteMessage(BaseModel):
    type: Literal["INIT_COMPLETE"] = "INIT_COMPLETE"


class SearchResultsMessage(BaseModel):
    type: Literal["SEARCH_RESULTS"] = "SEARCH_RESULTS"
    matches: list[MatchPayload] = Field(default_factory=list)


class ErrorMessage(BaseModel):
    type: Literal["ERROR"] = "ERROR"
    message: str


WorkerRequest: TypeAlias = Annotated[
    Union[InitMessage, SearchMessage, ShutdownMessage], Field(discriminator="type")
]
WorkerResponse: TypeAlias = Annotated[
    Union[InitCompleteMessage, SearchResultsMessage, ErrorMessage],
    Field(discriminator="type"),
]

worker_request_adapter: TypeAdapter[WorkerRequest] = TypeAdapter(WorkerRequest)
worker_response_adapter: TypeAdapter[WorkerResponse] = TypeAdapter(WorkerResponse)


# ---------------------------------------------------------------------------
# Session events
# ---------------------------------------------------------------------------


class SearchProgressEvent(BaseModel):
    """Emitted after every processed batch"""

    type: Literal["SEARCH_PROGRESS"] = "SEARCH_PROGRESS"
    count: int = Field(description="Matches found so far")


class SearchCompleteEvent(BaseModel):
    """Emitted once a session reaches a terminal state"""

    type: Literal["SEARCH_COMPLETE"] = "SEARCH_COMPLETE"
    state: SessionState
    count: int
    current_index: int
    total_matches: int
    error: str | None = None


class MatchUpdateEvent(BaseModel):
    """Emitted when navigation moves the active match"""

    type: Literal["MATCH_UPDATE"] = "MATCH_UPDATE"
    current_index: int
    total_matches: int


SessionEvent: TypeAlias = SearchProgressEvent | SearchCompleteEvent | MatchUpdateEvent


# ---------------------------------------------------------------------------
# Host protocol
# ---------------------------------------------------------------------------


class SetDocumentRequest(BaseModel):
    """Replace the document being searched"""

    type: Literal["SET_DOCUMENT"] = "SET_DOCUMENT"
    text: str | None = Field(default=None, description="Plain text, one unit per line")
    pages: list[str] | None = Field(default=None, description="Extracted text per PDF page")


class StartSearchRequest(BaseModel):
    type: Literal["START_SEARCH"] = "START_SEARCH"
    query: str
    mode: SearchMode = "semantic"


class NextMatchRequest(BaseModel):
    type: Literal["NEXT_MATCH"] = "NEXT_MATCH"


class PrevMatchRequest(BaseModel):
    type: Literal["PREV_MATCH"] = "PREV_MATCH"


class CancelSearchRequest(BaseModel):
    type: Literal["CANCEL_SEARCH"] = "CANCEL_SEARCH"


class PingRequest(BaseModel):
    type: Literal["PING"] = "PING"


HostRequest: TypeAlias = Annotated[
    Union[
        SetDocumentRequest,
        StartSearchRequest,
        NextMatchRequest,
        PrevMatchRequest,
        CancelSearchRequest,
        PingRequest,
    ],
    Field(discriminator="type"),
]

host_request_adapter: TypeAdapter[HostRequest] = TypeAdapter(HostRequest)
