"""
Frame Assembler for Chunked Inbound Messages

A single logical WebSocket message may arrive as several fragments. This
module buffers those fragments and hands off the complete text payload
once the final fragment has been seen.

Usage:
    assembler = FrameAssembler()
    assembler.feed("{\"type\":", final=False)     # -> None
    assembler.feed("\"chat\"}", final=True)        # -> '{"type":"chat"}'
"""

import codecs
import logging
from typing import List, Optional, Union

logger = logging.getLogger(__name__)


class FrameAssembler:
    """
    Reassembles the fragments of one message into a complete payload.

    Not thread-safe: fragments of a message are delivered sequentially by
    the inbound loop, which is the only caller.

    Attributes:
        pending_chunks: Number of fragments buffered for the current message
    """

    def __init__(self):
        self._chunks: List[str] = []
        self._decoder = codecs.getincrementaldecoder("utf-8")(
            errors="replace"
        )

    @property
    def pending_chunks(self) -> int:
        return len(self._chunks)

    def feed(
        self, chunk: Union[str, bytes], final: bool = False
    ) -> Optional[str]:
        """
        Buffer a fragment and return the payload when it is the last one.

        Args:
            chunk: Text fragment (binary fragments are decoded as UTF-8)
            final: True if this fragment completes the message

        Returns:
            The concatenated payload if final is True, otherwise None
        """
        if isinstance(chunk, (bytes, bytearray)):
            chunk = self._decoder.decode(bytes(chunk), final=final)
        elif final:
            # Flush bytes of a character split across binary fragments
            chunk = self._decoder.decode(b"", final=True) + chunk

        if chunk:
            self._chunks.append(chunk)

        if not final:
            return None

        payload = "".join(self._chunks)
        self.reset()
        logger.debug("Assembled payload of %d characters", len(payload))
        return payload

    def reset(self) -> None:
        """Drop any partially received message."""
        self._chunks.clear()
        self._decoder.reset()
