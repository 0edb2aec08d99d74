import pytest
from pytest import fail
import json
from biblepassage import main, parse, Passage, RefJSONEncoder

def test_canonical(capsys):
    res = main(["John3:16", "Gen 1:1,2:1"])
    out = capsys.readouterr().out.splitlines()
    if res != 0 or out != ["John 3:16", "Genesis 1:1, 2:1"]:
        fail(f"main returned {res} with {out}")

def test_error(capsys):
    res = main(["Genesis 51", "Jude 3"])
    cap = capsys.readouterr()
    if res != 1:
        fail(f"main returned {res} for a bad reference")
    if "Genesis doesn't have a chapter 51" not in cap.err or cap.out.strip() != "Jude 3":
        fail(f"Unexpected output {cap}")

def test_quiet(capsys):
    main(["-q", "Foo 1"])
    if capsys.readouterr().err:
        fail("Quiet still reported the error")

def test_json(capsys):
    main(["-j", "Genesis 1:1, 2:1"])
    res = json.loads(capsys.readouterr().out)
    if res["reference"] != "Genesis 1:1, 2:1" or len(res["ranges"]) != 2:
        fail(f"Unexpected json {res}")
    if res["ranges"][1] != {"book": "GEN", "from_chapter": 2, "from_verse": 1, "to_chapter": 2, "to_verse": 1}:
        fail(f"Unexpected range {res['ranges'][1]}")

def test_bad_versification(capsys):
    if main(["-r", "nosuchversification", "John 3:16"]) != 1:
        fail("Missing versification was not reported")

def test_encoder():
    res = json.loads(json.dumps(Passage(parse("Foo 1", raise_errors=False)), cls=RefJSONEncoder))
    if "Foo" not in res["error"]:
        fail(f"Unexpected json {res}")
