"""Tests for ObservedDict, ObservedList and observe()."""

import pytest

from propwork import ObservedDict, ObservedList, observe, to_plain


class Recorder:
    """Collects the events an observed structure reports."""

    def __init__(self):
        self.events = []

    def access(self, *path):
        self.events.append(("access", path))

    def mutate(self, *path):
        self.events.append(("mutate", path))

    def delete(self, *path):
        self.events.append(("delete", path))

    def wrap(self, source):
        return observe(source, self.access, self.mutate, self.delete)


class Point:
    def __init__(self, x):
        self.x = x


class TestObservedDict:
    def test_wraps_plain_dict(self):
        d = Recorder().wrap({"a": 1})
        assert isinstance(d, ObservedDict)
        assert d == {"a": 1}

    def test_read_reports_access(self):
        rec = Recorder()
        d = rec.wrap({"a": 1})
        assert d["a"] == 1
        assert d.get("a") == 1
        assert rec.events == [("access", ("a",)), ("access", ("a",))]

    def test_missing_key_is_not_an_access(self):
        rec = Recorder()
        d = rec.wrap({"a": 1})
        assert d.get("b", 7) == 7
        with pytest.raises(KeyError):
            d["b"]
        assert rec.events == []

    def test_key_inspection_is_untracked(self):
        rec = Recorder()
        d = rec.wrap({"a": 1, "b": 2})
        assert "a" in d
        assert len(d) == 2
        assert set(d.keys()) == {"a", "b"}
        assert list(d) == ["a", "b"]
        assert rec.events == []

    def test_values_and_items_are_accesses(self):
        rec = Recorder()
        d = rec.wrap({"a": 1, "b": 2})
        assert sorted(d.values()) == [1, 2]
        assert ("access", ("a",)) in rec.events
        assert ("access", ("b",)) in rec.events

    def test_write_existing_key(self):
        rec = Recorder()
        d = rec.wrap({"a": 1})
        d["a"] = 2
        assert rec.events == [("mutate", ("a",))]

    def test_same_value_is_not_a_write(self):
        rec = Recorder()
        d = rec.wrap({"a": 1})
        d["a"] = 1
        assert rec.events == []

    def test_new_key_reports_shape_change(self):
        rec = Recorder()
        d = rec.wrap({"a": 1})
        d["b"] = 2
        assert rec.events == [("mutate", ())]

    def test_delete(self):
        rec = Recorder()
        d = rec.wrap({"a": 1})
        del d["a"]
        assert rec.events == [("delete", ("a",))]
        assert "a" not in d

    def test_delete_missing_key_raises(self):
        rec = Recorder()
        d = rec.wrap({})
        with pytest.raises(KeyError):
            del d["nope"]
        assert rec.events == []

    def test_update_and_setdefault(self):
        rec = Recorder()
        d = rec.wrap({"a": 1})
        d.update({"a": 2}, c=3)
        assert d.setdefault("a", 99) == 2
        assert to_plain(d) == {"a": 2, "c": 3}
        assert ("mutate", ("a",)) in rec.events
        assert ("mutate", ()) in rec.events

    def test_repr(self):
        d = Recorder().wrap({"a": 1})
        assert repr(d) == "ObservedDict({'a': 1})"


class TestNesting:
    def test_nested_paths(self):
        rec = Recorder()
        d = rec.wrap({"a": {"b": {"c": 1}}})
        d["a"]["b"]["c"] = 2
        assert rec.events == [
            ("access", ("a",)),
            ("access", ("a", "b")),
            ("mutate", ("a", "b", "c")),
        ]

    def test_nested_new_key_reports_parent(self):
        rec = Recorder()
        d = rec.wrap({"a": {"b": 1}})
        inner = d["a"]
        rec.events.clear()
        inner["new"] = 1
        assert rec.events == [("mutate", ("a",))]

    def test_assigned_dict_is_wrapped(self):
        rec = Recorder()
        d = rec.wrap({"a": None})
        d["a"] = {"x": [1]}
        assert isinstance(d["a"], ObservedDict)
        assert isinstance(d["a"]["x"], ObservedList)
        rec.events.clear()
        d["a"]["x"][0] = 5
        assert rec.events[-1] == ("mutate", ("a", "x", 0))

    def test_class_instances_pass_through(self):
        rec = Recorder()
        point = Point(1)
        d = rec.wrap({"p": point})
        p = d["p"]
        assert p is point
        p.x = 2
        assert rec.events == [("access", ("p",))]

    def test_dict_subclass_passes_through(self):
        class Config(dict):
            pass

        config = Config(a=1)
        d = Recorder().wrap({"c": config})
        assert d["c"] is config

    def test_self_reference_returns_existing_proxy(self):
        source = {"name": "root"}
        source["self"] = source
        d = Recorder().wrap(source)
        assert d["self"] is d

    def test_guard_is_scoped_to_branch(self):
        rec = Recorder()
        shared = {"v": 1}
        d = rec.wrap({"a": shared, "b": shared})
        assert d["a"] is not d["b"]
        rec.events.clear()
        d["a"]["v"] = 2
        assert rec.events[-1] == ("mutate", ("a", "v"))
        assert d["b"]["v"] == 1

    def test_reassigning_observed_container_copies_it(self):
        rec = Recorder()
        d = rec.wrap({"a": {"x": 1}, "b": None})
        d["b"] = d["a"]
        assert d["b"] is not d["a"]
        assert d["b"] == {"x": 1}
        rec.events.clear()
        d["b"]["x"] = 3
        assert rec.events[-1] == ("mutate", ("b", "x"))
        assert d["a"]["x"] == 1

    def test_source_is_copied(self):
        source = {"a": 1}
        d = Recorder().wrap(source)
        d["a"] = 2
        assert source == {"a": 1}


class TestObservedList:
    def test_index_reports_access(self):
        rec = Recorder()
        lst = rec.wrap([1, 2, 3])
        assert lst[0] == 1
        assert lst[-1] == 3
        assert rec.events == [("access", (0,)), ("access", (2,))]

    def test_iteration_reads_every_index(self):
        rec = Recorder()
        lst = rec.wrap([1, 2])
        assert list(lst) == [1, 2]
        assert rec.events == [("access", (0,)), ("access", (1,))]

    def test_len_is_untracked(self):
        rec = Recorder()
        lst = rec.wrap([1, 2])
        assert len(lst) == 2
        assert rec.events == []

    def test_slice_reads_each_index(self):
        rec = Recorder()
        lst = rec.wrap([1, 2, 3])
        assert lst[1:] == [2, 3]
        assert rec.events == [("access", (1,)), ("access", (2,))]

    def test_setitem(self):
        rec = Recorder()
        lst = rec.wrap([1, 2, 3])
        lst[1] = 20
        lst[2] = 3
        assert rec.events == [("mutate", (1,))]

    def test_setitem_out_of_range(self):
        lst = Recorder().wrap([1])
        with pytest.raises(IndexError):
            lst[3] = 1

    def test_append_reports_shape_change(self):
        rec = Recorder()
        lst = rec.wrap([1])
        lst.append(2)
        assert rec.events == [("mutate", ())]
        assert lst == [1, 2]

    def test_insert_reports_shifted_indexes(self):
        rec = Recorder()
        lst = rec.wrap([1, 2])
        lst.insert(0, 0)
        assert rec.events == [("mutate", (0,)), ("mutate", (1,)), ("mutate", ())]
        assert lst == [0, 1, 2]

    def test_pop_last(self):
        rec = Recorder()
        lst = rec.wrap([1, 2, 3])
        assert lst.pop() == 3
        assert rec.events == [("delete", (2,)), ("mutate", ())]

    def test_pop_first(self):
        rec = Recorder()
        lst = rec.wrap([1, 2, 3])
        assert lst.pop(0) == 1
        assert rec.events == [
            ("mutate", (0,)),
            ("mutate", (1,)),
            ("delete", (2,)),
            ("mutate", ()),
        ]

    def test_sort_and_reverse(self):
        rec = Recorder()
        lst = rec.wrap([3, 1, 2])
        lst.sort()
        assert lst == [1, 2, 3]
        assert rec.events == [("mutate", (0,)), ("mutate", (1,)), ("mutate", (2,))]
        rec.events.clear()
        lst.reverse()
        assert lst == [3, 2, 1]
        assert ("mutate", ()) not in rec.events

    def test_remove_clear_extend(self):
        lst = Recorder().wrap([1, 2, 3])
        lst.remove(2)
        assert lst == [1, 3]
        lst.extend([4, 5])
        assert lst == [1, 3, 4, 5]
        lst += [6]
        assert lst == [1, 3, 4, 5, 6]
        lst.clear()
        assert lst == []

    def test_moved_container_keeps_identity(self):
        rec = Recorder()
        lst = rec.wrap([{"a": 1}, {"a": 2}])
        first = lst[0]
        lst.insert(0, {"a": 0})
        assert lst[1] is first
        rec.events.clear()
        first["a"] = 5
        assert rec.events == [("mutate", (1, "a"))]

    def test_list_in_dict(self):
        rec = Recorder()
        d = rec.wrap({"items": [1]})
        d["items"].append(2)
        assert rec.events == [("access", ("items",)), ("mutate", ("items",))]


class TestToPlain:
    def test_round_trip_types(self):
        d = Recorder().wrap({"a": [1, {"b": 2}]})
        plain = to_plain(d)
        assert type(plain) is dict
        assert type(plain["a"]) is list
        assert plain == {"a": [1, {"b": 2}]}

    def test_records_nothing(self):
        rec = Recorder()
        d = rec.wrap({"a": [1, {"b": 2}]})
        to_plain(d)
        assert d == {"a": [1, {"b": 2}]}
        assert rec.events == []

    def test_primitives_unchanged(self):
        assert to_plain(5) == 5
        assert to_plain("x") == "x"
