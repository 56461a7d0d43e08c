"""Protocol layer: message framing and the JSON-RPC message model."""

from .framing import Frame, FrameError, TruncatedFrameError, read_frame, write_frame
from .messages import ErrorCode, MessageKind, RpcError, classify
