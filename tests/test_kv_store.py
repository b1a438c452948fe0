def test_json_round_trip(store, fake_redis):
    store.set("user:1", {"name": "Ana", "totalPoints": 0})
    assert fake_redis.data["user:1"] == '{"name": "Ana", "totalPoints": 0}'
    assert store.get("user:1") == {"name": "Ana", "totalPoints": 0}


def test_missing_key(store):
    assert store.get("user:missing") is None


def test_get_by_prefix_only_matches_prefix(store):
    store.mset({"quiz:q1": {"id": "q1"}, "quiz:q2": {"id": "q2"}, "user:q3": {"id": "q3"}})
    assert store.keys_by_prefix("quiz:") == ["quiz:q1", "quiz:q2"]
    assert sorted(v["id"] for v in store.get_by_prefix("quiz:")) == ["q1", "q2"]
    assert store.get_by_prefix("nothing:") == []


def test_delete(store):
    store.mset({"a": 1, "b": 2, "c": 3})
    store.delete("a")
    store.mdelete(["b"])
    store.mdelete([])
    assert store.get("a") is None
    assert store.get("b") is None
    assert store.get("c") == 3
