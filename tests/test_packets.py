import json

from tx_engine.feed.packets import FeedDispatcher, PredictRequest, RoundEvent, TokenExpired, parse_packet

def result(d1, d2, d3):
    return json.dumps([5, {"cmd": 1015, "d": {"cmd": 6006, "d1": d1, "d2": d2, "d3": d3}}])

def test_parse_known_packets():
    assert parse_packet(result(3, 4, 5)) == RoundEvent(3, 4, 5)
    assert parse_packet('[5, {"cmd": 6005, "sid": 9}]') == PredictRequest()
    assert parse_packet('[1, false, 100, "expired"]') == TokenExpired()

def test_ignore_noise():
    assert parse_packet("not json") is None
    assert parse_packet("{}") is None
    assert parse_packet('[5, {"cmd": 1015, "d": {"cmd": 6007}}]') is None
    assert parse_packet('[7, {"cmd": 6005}]') is None
    assert parse_packet(result(0, 4, 5)) is None

def test_dispatch():
    calls = []
    disp = FeedDispatcher(on_round=lambda *d: calls.append(d) or "round",
                          on_predict=lambda: calls.append("predict") or "pred",
                          on_token_expired=lambda: calls.append("relogin"))
    assert disp.handle(result(1, 2, 3).encode()) == "round"
    assert disp.handle('[5, {"cmd": 6005}]') == "pred"
    disp.handle('[1, false, 100]')
    assert disp.handle('[5, {}]') is None
    assert calls == [(1, 2, 3), "predict", "relogin"]
