"""
Decoder for the upstream game socket.

Messages are JSON arrays. The ones that matter here:

    [5, {"cmd": 6005, ...}]                                   predict request
    [5, {"cmd": 1015, "d": {"cmd": 6006, "d1":.., "d2":.., "d3":..}}]   round result
    [1, false, 100, ...]                                      access token rejected

Everything else is ignored. The connection, login and token cache belong to
whoever owns the socket; this module only turns frames into events.
"""

import json
import logging
from dataclasses import dataclass
from typing import Callable, Union

from tx_engine.core.validation import is_valid_dice

logger = logging.getLogger(__name__)

CMD_PUSH = 5
CMD_PREDICT = 6005
CMD_GAME = 1015
CMD_RESULT = 6006


@dataclass(frozen=True)
class RoundEvent:
    d1: int
    d2: int
    d3: int


@dataclass(frozen=True)
class PredictRequest:
    pass


@dataclass(frozen=True)
class TokenExpired:
    pass


FeedEvent = Union[RoundEvent, PredictRequest, TokenExpired]


def parse_packet(raw: str | bytes) -> FeedEvent | None:
    try:
        pkt = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(pkt, list) or len(pkt) < 2:
        return None

    if len(pkt) >= 3 and pkt[0] == 1 and pkt[1] is False and pkt[2] == 100:
        return TokenExpired()

    if pkt[0] != CMD_PUSH or not isinstance(pkt[1], dict):
        return None
    body = pkt[1]

    if body.get("cmd") == CMD_PREDICT:
        return PredictRequest()

    d = body.get("d")
    if body.get("cmd") == CMD_GAME and isinstance(d, dict) and d.get("cmd") == CMD_RESULT:
        dice = (d.get("d1"), d.get("d2"), d.get("d3"))
        if not all(is_valid_dice(x) for x in dice):
            logger.warning("dropping result packet with bad dice: %r", dice)
            return None
        return RoundEvent(*dice)

    return None


class FeedDispatcher:
    """Routes decoded feed events to round/predict handlers."""

    def __init__(self, on_round: Callable[[int, int, int], object],
                 on_predict: Callable[[], object],
                 on_token_expired: Callable[[], object] | None = None):
        self.on_round = on_round
        self.on_predict = on_predict
        self.on_token_expired = on_token_expired

    def handle(self, raw: str | bytes):
        event = parse_packet(raw)
        if event is None:
            return None
        if isinstance(event, RoundEvent):
            return self.on_round(event.d1, event.d2, event.d3)
        if isinstance(event, PredictRequest):
            return self.on_predict()
        logger.warning("upstream rejected the access token")
        if self.on_token_expired is not None:
            return self.on_token_expired()
        return None
