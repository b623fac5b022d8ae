from .category import GuaCategoryRepository, HexagramEntry, HexagramRepository
from .config import Settings
from .engine import CoinEngine, cast_line, yao_from_sum
from .errors import (
    BaguaError,
    DataIntegrityError,
    EmptyInterpretationError,
    InterpretationError,
    StreamUnavailableError,
    TransportError,
)
from .gua_model import Gua, resolve, transform, trigram_name
from .gua_resolver import InterpretationClient, StreamDecoder, extract_content, parse_frame
from .gua_types import Yao, YaoType, YinYang, YinYangType
from .session import CastResult, CastSession, CastState

__all__ = [
    "GuaCategoryRepository",
    "HexagramEntry",
    "HexagramRepository",
    "Settings",
    "CoinEngine",
    "cast_line",
    "yao_from_sum",
    "BaguaError",
    "DataIntegrityError",
    "EmptyInterpretationError",
    "InterpretationError",
    "StreamUnavailableError",
    "TransportError",
    "Gua",
    "resolve",
    "transform",
    "trigram_name",
    "InterpretationClient",
    "StreamDecoder",
    "extract_content",
    "parse_frame",
    "Yao",
    "YaoType",
    "YinYang",
    "YinYangType",
    "CastResult",
    "CastSession",
    "CastState",
]
