"""Object detection results and a stage that sends them over UDP."""

from __future__ import annotations

import logging
import socket
import struct
from dataclasses import dataclass
from typing import Any, Mapping

from .stage import PostProcessingStage, register_stage

logger = logging.getLogger(__name__)

NAME = "object_detect_udp"
START_DELIMITER = 0xDDCCBBAA
DEFAULT_IP = "127.0.0.1"
DEFAULT_PORT = 12347
NAME_LENGTH = 255

# Delimiter, x, y, width, height, name length, name, confidence.
_PACKET = struct.Struct("<I4iB%dsf" % NAME_LENGTH)


@dataclass
class Detection:
    """One detected object and its bounding box (x, y, width, height)."""

    category: int
    name: str
    confidence: float
    box: tuple[int, int, int, int]

    def __str__(self) -> str:
        x, y, w, h = self.box
        return f"{self.name}[{self.category}] ({self.confidence:.2g}) @ {x},{y} {w}x{h}"


def encode_detection(detection: Detection) -> bytes:
    """Encode a detection as one datagram of the binary wire format."""
    name = detection.name.encode("utf-8")[: NAME_LENGTH - 2]
    x, y, w, h = detection.box
    return _PACKET.pack(
        START_DELIMITER, x, y, w, h, NAME_LENGTH, name, detection.confidence
    )


class ObjectDetectUdpStage(PostProcessingStage):
    """Sends every detection in a request's metadata as a UDP datagram."""

    def __init__(self, app: Any):
        super().__init__(app)
        self.address = "127.0.0.1"
        self.port = 12345
        self.stream: Any = None
        self._sock: socket.socket | None = None

    def name(self) -> str:
        return NAME

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def read(self, params: Mapping[str, Any]) -> None:
        self.address = str(params.get("ip", DEFAULT_IP))
        port = int(params.get("port", DEFAULT_PORT))
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"{NAME}: port {port} out of range")
        self.port = port

    def configure(self) -> None:
        self.stream = self.app.get_main_stream()
        self.close()
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as exc:
            logger.error("UDP socket creation failed: %s", exc)
            return
        try:
            socket.inet_pton(socket.AF_INET, self.address)
        except OSError:
            logger.error("Invalid address/ Address not supported: %s", self.address)
            sock.close()
            return
        self._sock = sock
        logger.info("UDP socket initialized for IP: %s, Port: %d", self.address, self.port)

    def process(self, completed_request: Any) -> bool:
        if self.stream is None:
            return False
        detections = completed_request.post_process_metadata.get("object_detect.results", [])
        if self._sock is None:
            return False
        for detection in detections:
            try:
                self._sock.sendto(encode_detection(detection), (self.address, self.port))
            except OSError as exc:
                logger.error("Failed to send UDP message: %s", exc)
        return False

    def close(self) -> None:
        """Close the socket if it is open."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None
            logger.info("UDP socket closed.")

    def __enter__(self) -> ObjectDetectUdpStage:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


register_stage(NAME, ObjectDetectUdpStage)