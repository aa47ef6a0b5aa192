import pytest

from grantlang.ast.policy import Action, AtomPolicy, CompositePolicy, PolicyAtom, Table, Var, make_policy


def _atom(name: str = "Users") -> PolicyAtom:
    return PolicyAtom(action=Action.READ, resource=Table(name))


def test_make_policy_picks_variant_by_atom_count() -> None:
    assert isinstance(make_policy([_atom()]), AtomPolicy)
    assert isinstance(make_policy([_atom("A"), _atom("B")]), CompositePolicy)


def test_make_policy_rejects_empty_atom_list() -> None:
    with pytest.raises(ValueError):
        make_policy([])


def test_composite_policy_never_holds_a_single_atom() -> None:
    with pytest.raises(ValueError):
        CompositePolicy((_atom(),))
    with pytest.raises(ValueError):
        CompositePolicy(())


def test_var_requires_segments() -> None:
    with pytest.raises(ValueError):
        Var(())
    with pytest.raises(ValueError):
        Var(("caller", ""))
    assert Var(["caller", "id"]).path == ("caller", "id")
    assert Var(("caller", "id")).dotted == "caller.id"


def test_atom_normalizes_sequences_to_tuples() -> None:
    atom = PolicyAtom(action=Action.READ, resource=Table("T"), filters=[], attributes=["a"])
    assert atom.filters == ()
    assert atom.attributes == ("a",)


def test_none_and_empty_attributes_are_distinct() -> None:
    assert PolicyAtom(Action.READ, Table("T"), attributes=None) != PolicyAtom(Action.READ, Table("T"), attributes=())
