from core.templates import (
    UNITY_ANALYTICS,
    apply_template,
    detect_template,
    get_template,
    list_templates,
    match_template,
    score_template,
)


def test_builtin_templates():
    templates = list_templates()
    assert [t.name for t in templates] == [
        "Unity Analytics",
        "Firebase Analytics",
        "GameAnalytics",
        "PlayFab",
        "Godot Custom Analytics",
        "Generic Mobile Game",
    ]


def test_get_template():
    assert get_template("godot").name == "Godot Custom Analytics"
    assert get_template("does-not-exist") is None


def test_score_is_case_insensitive():
    assert score_template(["USERID", "EVENTNAME", "TIMESTAMP"], UNITY_ANALYTICS) == 9
    assert score_template(["os"], UNITY_ANALYTICS) == 1


def test_detect_firebase():
    cols = ["user_pseudo_id", "event_name", "event_timestamp", "geo.country"]
    assert detect_template(cols).id == "firebase-analytics"


def test_detect_prefers_earlier_template_on_tie():
    # Unity and Firebase both score 9 here
    assert detect_template(["userId", "eventName", "timestamp"]).id == "unity-analytics"


def test_detect_requires_minimum_score():
    assert detect_template(["foo", "bar"]) is None
    assert detect_template(["level", "score"]) is None
    assert detect_template([]) is None


def test_apply_template():
    mappings = apply_template(["userId", "eventName", "timestamp", "os", "extra"], UNITY_ANALYTICS)
    assert mappings == {
        "userId": "user_id",
        "eventName": "event_name",
        "timestamp": "timestamp",
        "os": "platform",
    }


def test_apply_template_first_column_wins():
    mappings = apply_template(["version", "appVersion"], UNITY_ANALYTICS)
    assert mappings == {"version": "version"}


def test_match_template():
    match = match_template(["PlayerId", "EventName", "Timestamp", "TitleId"])
    assert match.template.id == "playfab"
    assert match.mappings["TitleId"] == "game_id"

    empty = match_template(["foo"])
    assert empty.template is None
    assert empty.mappings == {}
