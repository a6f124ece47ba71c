from models.image_record import Rarity
from models.search_models import QueryIdentity, SearchFilters


def test_filters_compare_structurally():
    assert SearchFilters(rarity="rare", min_rating=7) == SearchFilters(rarity=Rarity.RARE, min_rating=7.0)
    assert SearchFilters(keyword="a") != SearchFilters(keyword="b")
    assert SearchFilters() == SearchFilters(keyword="", style_tag=" ")


def test_active_count_and_activeness():
    assert not SearchFilters().is_active
    filters = SearchFilters(rarity="unique", keyword="tree")
    assert filters.is_active
    assert filters.active_count == 2


def test_as_dict_only_holds_defined_fields():
    assert SearchFilters(rarity="rare", min_rating=3).as_dict() == {"rarity": "rare", "min_rating": 3.0}
    assert SearchFilters().as_dict() == {}


def test_with_changes_clears_back_to_none():
    filters = SearchFilters(keyword="tree").with_changes(keyword=None)
    assert not filters.is_active


def test_query_identity_normalizes_args():
    identity = QueryIdentity("list_recent", [50])
    assert identity.args == ("50",)
    assert identity == QueryIdentity("list_recent", ("50",))
    assert identity.matches("list_")
    assert not identity.matches("count")
