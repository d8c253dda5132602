"""Type definitions for the StandardAPI schema endpoint."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Attribute:
    """A column of a model."""

    name: str
    type: str
    default: Any = None
    primary_key: bool = False
    null: bool = True
    array: bool = False
    comment: str | None = None

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "Attribute":
        """Create Attribute from its schema description."""
        return cls(
            name=name,
            type=data["type"],
            default=data.get("default"),
            primary_key=data.get("primary_key", False),
            null=data.get("null", True),
            array=data.get("array", False),
            comment=data.get("comment"),
        )


@dataclass
class Model:
    """A model exposed by the API, with its attributes by name."""

    name: str
    attributes: dict[str, Attribute] = field(default_factory=dict)
    comment: str | None = None

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "Model":
        """Create Model from its schema description."""
        return cls(
            name=name,
            attributes={
                attr_name: Attribute.from_dict(attr_name, attr)
                for attr_name, attr in data.get("attributes", {}).items()
            },
            comment=data.get("comment"),
        )

    @property
    def primary_key(self) -> Attribute | None:
        for attribute in self.attributes.values():
            if attribute.primary_key:
                return attribute
        return None


@dataclass
class Route:
    """An endpoint of the API."""

    path: str
    method: str
    model: Model | None = None
    array: bool = False
    limit: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], models: dict[str, Model]) -> "Route":
        """Create Route from its schema description.

        The ``model`` name is looked up in the already decoded ``models``.
        """
        model_name = data.get("model")
        model = None
        if model_name is not None:
            try:
                model = models[model_name]
            except KeyError:
                raise ValueError(
                    f"Route {data.get('method')} {data.get('path')} refers to unknown model '{model_name}'"
                ) from None

        return cls(
            path=data["path"],
            method=data["method"].upper(),
            model=model,
            array=data.get("array", False),
            limit=data.get("limit"),
        )


@dataclass
class Schema:
    """Result of the schema endpoint."""

    models: dict[str, Model] = field(default_factory=dict)
    routes: list[Route] = field(default_factory=list)
    comment: str | None = None

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> "Schema":
        """Create Schema from the endpoint response."""
        models = {
            name: Model.from_dict(name, data) for name, data in response.get("models", {}).items()
        }
        routes = [Route.from_dict(route, models) for route in response.get("routes", [])]
        return cls(models=models, routes=routes, comment=response.get("comment"))

    def route(self, method: str, path: str) -> Route | None:
        """Find the route for a method and path."""
        method = method.upper()
        for route in self.routes:
            if route.method == method and route.path == path:
                return route
        return None
