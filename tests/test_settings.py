import pytest

from friiorec.settings import BandType, TunerType, tuner_type_name


def test_display_names_from_source():
    assert TunerType.FRIIO_WHITE.display_name() == "Friio(White)"
    assert TunerType.FRIIO_BLACK.display_name() == "Friio(Black)"
    assert TunerType.HDUS.display_name() == "HDUS"


def test_tuner_type_name_accepts_int():
    assert tuner_type_name(int(TunerType.HDP)) == "HDP"
    assert tuner_type_name(TunerType.FRIIO_BLACK) == TunerType.FRIIO_BLACK.display_name()


def test_every_tuner_has_distinct_name():
    names = {tuner_type_name(t) for t in TunerType}
    assert len(names) == len(TunerType)


def test_tuner_type_name_rejects_unknown():
    with pytest.raises(ValueError):
        tuner_type_name(len(TunerType))


def test_tuner_type_from_int():
    assert TunerType(2).display_name() == "HDUS"


def test_band_order():
    assert [BandType(i).name for i in range(5)] == ["VHF", "CATV", "UHF", "BS", "CS"]