import pytest

from friiorec.descramble import packet_decrypt
from friiorec.errors import TraceableError
from friiorec.hdus import (
    XOR_TABLE,
    DecryptMode,
    HdusStreamDecoder,
    carrier_to_noise,
    channel_frequency,
    signal_level,
)
from friiorec.settings import BandType


def _packet(fill=0x00):
    return bytes([0x47, 0x01, 0x11, 0x10]) + bytes([fill]) * 184


def test_uhf_first_channel():
    assert channel_frequency(BandType.UHF, 13) == 473


def test_uhf_channels_step_six_mhz():
    freqs = [channel_frequency(BandType.UHF, ch) for ch in range(13, 63)]
    assert all(b - a == 6 for a, b in zip(freqs, freqs[1:]))


def test_catv_fixed_points():
    assert channel_frequency(BandType.CATV, 13) == 111
    assert channel_frequency(BandType.CATV, 23) == 225
    assert channel_frequency(BandType.CATV, 24) == 233


def test_catv_upper_segment_continues_from_23():
    assert channel_frequency(BandType.CATV, 28) - channel_frequency(BandType.CATV, 23) == 5 * 6


@pytest.mark.parametrize(
    "band, channel",
    [(BandType.UHF, 12), (BandType.UHF, 63), (BandType.CATV, 64), (BandType.BS, 1), (BandType.CATV, 12)],
)
def test_unknown_channel(band, channel):
    with pytest.raises(TraceableError):
        channel_frequency(band, channel)


def test_signal_level_reference_is_zero():
    assert signal_level(5505024) == 0.0


def test_signal_level_zero_reading():
    assert signal_level(0) == 0.0


def test_signal_level_decreases_with_raw_value():
    assert signal_level(1000) > signal_level(100000) > signal_level(1000000)


def test_carrier_to_noise_at_reference():
    assert carrier_to_noise(5505024) == pytest.approx(3.0965)


def test_carrier_to_noise_zero_raises():
    with pytest.raises(ValueError):
        carrier_to_noise(0)


def test_negative_raw_rejected():
    with pytest.raises(ValueError):
        signal_level(-1)


def test_xor_mode_zero_payload_gives_table():
    out = HdusStreamDecoder(DecryptMode.XOR).feed(_packet())
    assert out[:4] == _packet()[:4]
    assert out[4:] == XOR_TABLE


def test_xor_mode_is_self_inverse():
    packet = _packet(0x5A)
    once = HdusStreamDecoder(DecryptMode.XOR).feed(packet)
    twice = HdusStreamDecoder(DecryptMode.XOR).feed(once)
    assert twice == packet


def test_des_mode_matches_packet_decrypt():
    packet = _packet(0x33)
    assert HdusStreamDecoder(DecryptMode.DES).feed(packet) == packet_decrypt(packet)


def test_partial_packet_is_held():
    decoder = HdusStreamDecoder()
    data = _packet(1) + _packet(2)
    assert decoder.feed(data[:100]) == b""
    rest = decoder.feed(data[100:])
    assert rest == HdusStreamDecoder().feed(data)
    assert len(rest) == 376


def test_chunking_does_not_change_output():
    data = _packet(7) * 3
    whole = HdusStreamDecoder().feed(data)
    decoder = HdusStreamDecoder()
    pieces = b"".join(decoder.feed(data[i:i + 50]) for i in range(0, len(data), 50))
    assert pieces == whole


def test_leading_garbage_passes_through():
    out = HdusStreamDecoder().feed(b"\x00\x01\x02" + _packet())
    assert out[:3] == b"\x00\x01\x02"
    assert out[3:] == HdusStreamDecoder().feed(_packet())


def test_reset_discards_partial():
    decoder = HdusStreamDecoder()
    decoder.feed(_packet(9)[:60])
    decoder.reset()
    assert decoder.feed(_packet(4)) == HdusStreamDecoder().feed(_packet(4))


def test_empty_feed_keeps_state():
    decoder = HdusStreamDecoder()
    decoder.feed(_packet()[:10])
    assert decoder.feed(b"") == b""
    assert decoder.feed(_packet()[10:]) == HdusStreamDecoder().feed(_packet())


def test_mode_from_register_value():
    assert HdusStreamDecoder(0x80).mode is DecryptMode.DES