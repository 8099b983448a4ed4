from flighttracker.services.reference_db import ReferenceDatabase

AIRLINES = """\
4296,"Ryanair",\\N,"FR","RYR","RYANAIR","Ireland","Y"
1355,"British Airways",\\N,"BA","BAW","SPEEDBIRD","United Kingdom","Y"
9999,"Duplicate Ryanair",\\N,"","RYR","","Nowhere","Y"
3000,"Defunct Air","Old Defunct","","DFA",\\N,"Atlantis","N"
"""

AIRCRAFTS = """\
4ca2d6,EI-DCL,Boeing 737-8AS,B738,Ryanair
400A1B,G-EUPT,Airbus A319-131,A319,
abcdef,,,,
"""


def _write_tables(tmp_path):
    airlines = tmp_path / "airlines.csv"
    aircrafts = tmp_path / "aircrafts.csv"
    airlines.write_text(AIRLINES, encoding="utf-8")
    aircrafts.write_text(AIRCRAFTS, encoding="utf-8")
    return airlines, aircrafts


def test_load_airlines_normalizes_rows(tmp_path):
    airlines, aircrafts = _write_tables(tmp_path)
    db = ReferenceDatabase.load(airlines, aircrafts)

    ryanair = db.airline_for_callsign("RYR12AB")
    assert ryanair is not None
    assert ryanair.id == 4296
    assert ryanair.name == "Ryanair"
    assert ryanair.alias is None
    assert ryanair.active is True

    defunct = db.airline_by_icao("dfa")
    assert defunct is not None
    assert defunct.active is False
    assert defunct.callsign is None
    assert defunct.label == "Old Defunct"


def test_first_airline_row_wins_for_duplicate_codes(tmp_path):
    airlines, aircrafts = _write_tables(tmp_path)
    db = ReferenceDatabase.load(airlines, aircrafts)

    assert db.airline_by_icao("RYR").name == "Ryanair"
    assert db.airline_count == 3


def test_aircraft_lookup_by_hex_is_case_insensitive(tmp_path):
    airlines, aircrafts = _write_tables(tmp_path)
    db = ReferenceDatabase.load(airlines, aircrafts)

    plane = db.aircraft_by_icao("4CA2D6")
    assert plane is not None
    assert plane.registration == "EI-DCL"
    assert plane.type == "B738"

    no_operator = db.aircraft_by_icao("400a1b")
    assert no_operator.operator is None

    empty = db.aircraft_by_icao("ABCDEF")
    assert empty.registration is None
    assert empty.type is None


def test_missing_tables_degrade_to_no_match(tmp_path):
    db = ReferenceDatabase.load(tmp_path / "missing.csv", tmp_path / "missing-too.csv")

    assert db.airline_for_callsign("RYR12AB") is None
    assert db.aircraft_by_icao("4CA2D6") is None
    assert db.airline_for_callsign("AB") is None
    assert db.airline_for_callsign(None) is None
