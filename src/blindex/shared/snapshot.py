"""
Snapshot codec for posting store state.

A snapshot is a UTF-8 JSON object mapping each token (64 lowercase hex
characters) to the list of document ids posted under it:

    {"3f1a...": ["doc1", "doc2"], "9bc0...": ["doc2"]}

Keys and lists are sorted ascending and separators are compact, so the same
posting state always encodes to the same bytes. Document payloads are never
part of a snapshot.
"""
import json
import logging
from typing import Annotated, Dict, Iterable, List, Sequence, Tuple, Union

from pydantic import RootModel, StrictStr, StringConstraints, ValidationError

from blindex.shared.protocol import MalformedSnapshot

logger = logging.getLogger(__name__)

TOKEN_PATTERN = r"^[0-9a-f]{64}$"

TokenHex = Annotated[str, StringConstraints(strict=True, pattern=TOKEN_PATTERN)]


class SnapshotModel(RootModel[Dict[TokenHex, List[StrictStr]]]):
    """Schema of a decoded snapshot."""


class SnapshotCodec:
    """
    Encode/decode posting store entries.

    The codec is stateless; decoding never touches any store, so callers can
    validate completely before replacing anything.
    """

    ENCODING = "utf-8"

    def encode(self, entries: Iterable[Tuple[str, Sequence[str]]]) -> bytes:
        """
        Encode posting entries canonically.

        Args:
            entries: (token, doc ids) pairs in any order

        Returns:
            Snapshot bytes
        """
        postings = {token: sorted(set(doc_ids)) for token, doc_ids in entries}
        text = json.dumps(
            postings,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )
        return text.encode(self.ENCODING)

    def decode(self, data: Union[bytes, bytearray, str]) -> Dict[str, List[str]]:
        """
        Parse and validate snapshot data.

        Args:
            data: Snapshot bytes (or already-decoded text)

        Returns:
            Mapping of token to sorted, de-duplicated doc ids

        Raises:
            MalformedSnapshot: data is not JSON or not a token -> [doc id] object
        """
        if isinstance(data, bytearray):
            data = bytes(data)
        if not isinstance(data, (bytes, str)):
            raise MalformedSnapshot(
                f"Snapshot must be bytes or str, got {type(data).__name__}"
            )

        try:
            model = SnapshotModel.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Rejected snapshot: %d validation error(s)", e.error_count())
            raise MalformedSnapshot(f"Invalid snapshot: {e}") from e

        return {token: sorted(set(doc_ids)) for token, doc_ids in model.root.items()}

