import pytest

from friiorec.tssplitter import (
    Splitter,
    SplitterError,
    crc32_mpeg,
    get_pid,
    parse_sid_list,
)


def header(pid, pusi=True, cc=0):
    return bytes([0x47, (0x40 if pusi else 0) | (pid >> 8), pid & 0xFF, 0x10 | cc])


def pad(data):
    return data + b"\xff" * (188 - len(data))


def pat_packet(programs, cc=0):
    body = bytes([0x00, 0x00, 0xE0, 0x10])
    for sid, pmt in programs:
        body += bytes([sid >> 8, sid & 0xFF, 0xE0 | (pmt >> 8), pmt & 0xFF])
    section_length = 5 + len(body) + 4
    section = bytes(
        [0x00, 0xB0 | (section_length >> 8), section_length & 0xFF, 0x7F, 0xE1, 0xC1, 0x00, 0x00]
    ) + body
    section += crc32_mpeg(section).to_bytes(4, "big")
    return pad(header(0, True, cc) + b"\x00" + section)


def pmt_packet(pid, program, pcr, streams, version=0, cc=0, program_info=b""):
    es = b""
    for stype, epid in streams:
        es += bytes([stype, 0xE0 | (epid >> 8), epid & 0xFF, 0xF0, 0x00])
    section_length = 9 + len(program_info) + len(es) + 4
    section = bytes(
        [
            0x02, 0xB0 | (section_length >> 8), section_length & 0xFF,
            program >> 8, program & 0xFF, 0xC1 | (version << 1), 0x00, 0x00,
            0xE0 | (pcr >> 8), pcr & 0xFF,
            0xF0 | (len(program_info) >> 8), len(program_info) & 0xFF,
        ]
    ) + program_info + es
    section += crc32_mpeg(section).to_bytes(4, "big")
    return pad(header(pid, True, cc) + b"\x00" + section)


def data_packet(pid):
    return pad(header(pid, False))


def pids_of(stream):
    return [get_pid(stream[i + 1:i + 3]) for i in range(0, len(stream), 188)]


PROGRAMS = [(0x0400, 0x1F0), (0x0401, 0x1F1)]
PAT = pat_packet(PROGRAMS)
PMT_A = pmt_packet(0x1F0, 0x0400, 0x111, [(0x02, 0x111), (0x0F, 0x112)])
PMT_B = pmt_packet(0x1F1, 0x0401, 0x121, [(0x02, 0x121)])
NULL = data_packet(0x1FFF)


def selected(sid):
    sp = Splitter(sid)
    assert sp.select(PAT + PMT_A + PMT_B + NULL) is True
    return sp


@pytest.mark.parametrize(
    "text, expected",
    [
        ("", []),
        ("101", ["101"]),
        ("101,102", ["101", "102"]),
        ("a,", ["a"]),
        (",a", ["", "a"]),
        ("a,,b", ["a", "", "b"]),
        ("a,b,", ["a", "b"]),
    ],
)
def test_parse_sid_list(text, expected):
    assert parse_sid_list(text) == expected


def test_get_pid():
    assert get_pid(bytes([0x41, 0x00])) == 0x0100
    assert get_pid(bytes([0xFF, 0xFF])) == 0x1FFF


def test_crc32_mpeg_check_value():
    assert crc32_mpeg(b"123456789") == 0x0376E6E7


def test_crc32_mpeg_residue_is_zero():
    data = b"transport stream section"
    assert crc32_mpeg(data + crc32_mpeg(data).to_bytes(4, "big")) == 0


def test_select_by_service_id_and_split():
    sp = selected("1024")
    assert sp.chosen_sids == [0x0400]
    assert sp.settled
    stream = (
        PAT + PMT_A + PMT_B
        + data_packet(0x111) + data_packet(0x112) + data_packet(0x121) + NULL
    )
    out = sp.split(stream)
    assert pids_of(out) == [0, 0x1F0, 0x111, 0x112]
    assert out[188:376] == PMT_A


def test_rebuilt_pat_lists_only_chosen_service():
    sp = selected("1025")
    pat = sp.split(PAT)
    section_end = 8 + pat[7]
    assert pat[13:17] == bytes([0x00, 0x00, 0xE0, 0x10])
    assert pat[17:21] == PAT[21:25]
    assert section_end == 25
    assert crc32_mpeg(pat[5:section_end]) == 0
    assert pat[section_end:] == b"\xff" * (188 - section_end)


def test_select_skips_last_packet():
    sp = Splitter("1024")
    assert sp.select(PAT + PMT_A) is False
    assert sp.select(PAT + PMT_A + NULL) is True


def test_select_marks_pmt_in_bytearray():
    data = bytearray(PAT + PMT_A + NULL)
    original = bytes(PAT + PMT_A + NULL)
    Splitter("1024").select(data)
    assert get_pid(data[189:191]) == 0x1FFF
    assert bytes(data[:188]) == original[:188]


def test_select_leaves_bytes_untouched():
    data = PAT + PMT_A + NULL
    Splitter("1024").select(data)
    assert get_pid(data[189:191]) == 0x1F0


@pytest.mark.parametrize("sid", ["all", "ALL", "9999"])
def test_all_and_fallback_select_every_service(sid):
    sp = selected(sid)
    assert sp.chosen_sids == [0x0400, 0x0401]
    assert sp.pmt_retain == 2


@pytest.mark.parametrize("sid, expected", [("hd", [0x0400]), ("sd1", [0x0400]), ("sd2", [0x0401])])
def test_positional_keywords(sid, expected):
    assert selected(sid).chosen_sids == expected


def test_sd3_missing_falls_back_to_all():
    assert selected("sd3").chosen_sids == [0x0400, 0x0401]


def test_available_services_reported():
    sp = selected("1024")
    assert sp.avail_sids == [0x0400, 0x0401]
    assert sp.avail_pmts == [0x1F0, 0x1F1]
    assert sp.num_pmts == 2


def test_oneseg_selects_pmt_1fc8():
    pat = pat_packet([(0x0400, 0x1F0), (0x0408, 0x1FC8)])
    sp = Splitter("1seg")
    sp.select(pat + NULL + NULL)
    assert sp.chosen_sids == [0x0408]


def test_epg_keeps_only_guide_pids():
    sp = Splitter("epg")
    assert sp.select(PAT + NULL) is True
    out = sp.split(PAT + data_packet(0x12) + PMT_A + data_packet(0x111))
    assert pids_of(out) == [0, 0x12]


def test_split_before_pat_analysis_raises():
    with pytest.raises(SplitterError):
        Splitter("1024").split(PAT)


def test_split_rejects_partial_packet():
    sp = selected("1024")
    with pytest.raises(ValueError):
        sp.split(NULL[:100])


def test_pat_continuity_counter_cycles():
    sp = selected("1024")
    out = sp.split(PAT * 17)
    counters = [out[i * 188 + 3] for i in range(17)]
    assert counters[0] == PAT[3]
    assert [c & 0x0F for c in counters] == list(range(16)) + [0]
    assert all(c >> 4 == 1 for c in counters)


def test_unchanged_pmt_version_keeps_pids():
    sp = selected("1024")
    out = sp.split(PMT_A + data_packet(0x111) + data_packet(0x112))
    assert pids_of(out) == [0x1F0, 0x111, 0x112]


def test_pmt_version_change_rescans_pids():
    sp = selected("1024")
    updated = pmt_packet(0x1F0, 0x0400, 0x131, [(0x02, 0x131)], version=1)
    out = sp.split(updated + data_packet(0x131) + data_packet(0x111))
    assert pids_of(out) == [0x1F0, 0x131]
    assert sp.settled


def test_ca_descriptor_pid_is_kept():
    ca = bytes([0x09, 0x04, 0x00, 0x05, 0xE9, 0x01])
    pmt = pmt_packet(0x1F0, 0x0400, 0x111, [(0x02, 0x111)], program_info=ca)
    sp = Splitter("1024")
    assert sp.select(PAT + pmt + NULL) is True
    out = sp.split(data_packet(0x901) + data_packet(0x111) + data_packet(0x902))
    assert pids_of(out) == [0x901, 0x111]


def test_type_d_stream_is_dropped():
    pmt = pmt_packet(0x1F0, 0x0400, 0x111, [(0x02, 0x111), (0x0D, 0x140)])
    sp = Splitter("1024")
    assert sp.select(PAT + pmt + NULL) is True
    out = sp.split(data_packet(0x140) + data_packet(0x111))
    assert pids_of(out) == [0x111]