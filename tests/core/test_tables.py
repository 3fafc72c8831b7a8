from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from ipren.core import Step, Task
from ipren.utils.tables import load_countries, load_events, load_matters, load_rules, write_tasks


def test_load_rules_keeps_order_and_defaults(tmp_path):
    path = tmp_path / "rules.csv"
    path.write_text(
        "trigger_event,task_code,for_country,years,months,end_of_month,active\n"
        "FIL,REN,FR,1,,true,\n"
        "FIL,EXA,,,18,,false\n"
    )
    rules = load_rules(path)

    assert [r.rule_id for r in rules] == ["rule_1", "rule_2"]
    assert rules[0].for_country == "FR"
    assert rules[0].years == 1
    assert rules[0].months == 0
    assert rules[0].end_of_month
    assert rules[0].active
    assert rules[1].for_country is None
    assert not rules[1].active
    assert rules[1].currency == "EUR"


def test_load_rules_missing_columns():
    with pytest.raises(ValueError, match="task_code"):
        load_rules(pd.DataFrame({"trigger_event": ["FIL"]}))


def test_load_matters_and_events():
    matters = load_matters(pd.DataFrame({
        "matter_id": ["m1", "m2"],
        "category": ["PAT", "TM"],
        "country": ["FR", "DE"],
        "expire_date": ["2040-01-01", None],
        "discount": ["0.1", None],
    }))
    events = load_events(pd.DataFrame({
        "matter_id": ["m1", "m1", "zz"],
        "code": ["FIL", "PRI", "FIL"],
        "event_date": ["2020-01-31", "2019-02-01", "2020-01-01"],
    }), matters)

    assert matters["m1"].expire_date == date(2040, 1, 1)
    assert matters["m1"].discount == pytest.approx(0.1)
    assert matters["m2"].discount == 0.0
    assert len(events) == 2
    assert matters["m1"].priority_date() == date(2019, 2, 1)
    assert matters["m2"].events == []


def test_event_without_date_rejected():
    matters = load_matters(pd.DataFrame({"matter_id": ["m1"], "category": ["PAT"], "country": ["FR"]}))
    events = pd.DataFrame({
        "matter_id": ["m1", "m1"],
        "code": ["FIL", "PUB"],
        "event_date": ["2020-01-31", None],
    })
    with pytest.raises(ValueError, match="row 2 .*no event_date"):
        load_events(events, matters)


def test_duplicate_matter_rejected():
    with pytest.raises(ValueError, match="Duplicate"):
        load_matters(pd.DataFrame({"matter_id": ["m1", "m1"], "category": ["PAT"] * 2, "country": ["FR"] * 2}))


def test_load_countries_defaults():
    countries = load_countries(pd.DataFrame({"iso": ["FR", "US"], "renewal_first": [None, "-4"]}))
    assert countries["FR"].renewal_first == 2
    assert countries["US"].renewal_first == -4
    assert countries["US"].renewal_base == "FIL"


def test_write_tasks(tmp_path):
    task = Task(task_id="t1", matter_id="m1", trigger_id="ev1", code="REN",
                due_date=date(2021, 1, 31), step=Step.REMINDED)
    path = write_tasks([task], tmp_path / "out" / "tasks.csv")

    frame = pd.read_csv(path)
    assert list(frame["task_id"]) == ["t1"]
    assert list(frame["step"]) == [2]
    assert list(frame["due_date"]) == ["2021-01-31"]
