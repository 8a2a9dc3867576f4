from types import SimpleNamespace

import pytest

from azurepreview.core.errors import ApiOperationError, ValidationError
from azurepreview.core.models import ResourcesQuery
from azurepreview.data_sources.resources import ResourcesDataSource, build_resource_filter, matches_tags

from .conftest import http_error


def _resource(name, tags=None, location="westeurope"):
    return SimpleNamespace(
        id=f"/subscriptions/s/resourceGroups/rg/providers/Microsoft.Web/sites/{name}",
        name=name,
        type="Microsoft.Web/sites",
        location=location,
        tags=tags,
    )


class TestFilter:
    def test_all_filters(self) -> None:
        query = ResourcesQuery(name="app", resource_type="Microsoft.Web/sites", resource_group_name="rg")
        assert build_resource_filter(query) == (
            "resourceType eq 'Microsoft.Web/sites' and name eq 'app' and resourceGroup eq 'rg'"
        )

    def test_no_filters(self) -> None:
        assert build_resource_filter(ResourcesQuery()) == ""


class TestTagMatching:
    def test_all_pairs_required(self) -> None:
        assert matches_tags({"env": "prod", "team": "a"}, {"env": "prod", "team": "a"})
        assert not matches_tags({"env": "prod"}, {"env": "prod", "team": "a"})

    def test_value_must_match_exactly(self) -> None:
        assert not matches_tags({"env": "Prod"}, {"env": "prod"})

    def test_untagged_resource(self) -> None:
        assert not matches_tags(None, {"env": "prod"})
        assert matches_tags(None, {})


class TestResourcesDataSource:
    def test_read(self, meta) -> None:
        meta.resources.resources.items = [
            _resource("a", {"env": "prod"}),
            _resource("b", {"env": "dev"}),
            _resource("c"),
        ]

        result = ResourcesDataSource().read(
            ResourcesQuery(resource_type="Microsoft.Web/sites", tags={"env": "prod"}), meta
        )

        assert [r.name for r in result.resources] == ["a"]
        assert result.resources[0].location == "westeurope"
        assert result.id
        assert meta.resources.resources.filters == ["resourceType eq 'Microsoft.Web/sites'"]

    def test_without_filters_lists_everything(self, meta) -> None:
        meta.resources.resources.items = [_resource("a"), _resource("b", {"x": "y"})]

        result = ResourcesDataSource().read(ResourcesQuery(), meta)

        assert len(result.resources) == 2
        assert meta.resources.resources.filters == [None]

    def test_subscription_override(self, meta) -> None:
        ResourcesDataSource().read(ResourcesQuery(subscription_id="other-sub"), meta)

        assert "other-sub" in meta.other_clients
        assert meta.resources.resources.filters == []

    def test_fresh_id_per_read(self, meta) -> None:
        source = ResourcesDataSource()
        assert source.read(ResourcesQuery(), meta).id != source.read(ResourcesQuery(), meta).id

    def test_empty_filter_value_rejected(self, meta) -> None:
        with pytest.raises(ValidationError):
            ResourcesDataSource().read(ResourcesQuery(name=""), meta)

    def test_api_error(self, meta) -> None:
        meta.resources.resources.fail_with = http_error(500)
        with pytest.raises(ApiOperationError):
            ResourcesDataSource().read(ResourcesQuery(), meta)
