from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class QueryKind(str, Enum):
    KEYWORD = "keyword"
    SHOP = "shop"
    PRODUCT = "product"
    RANK = "rank"


@dataclass(frozen=True)
class StringField:
    enum: tuple[str, ...] | None = None

    def to_json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "string"}
        if self.enum:
            schema["enum"] = list(self.enum)
        return schema


@dataclass(frozen=True)
class NumberField:
    integer: bool = False
    minimum: float | None = None
    maximum: float | None = None

    def to_json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "integer" if self.integer else "number"}
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        return schema


@dataclass(frozen=True)
class BooleanField:
    def to_json_schema(self) -> dict[str, Any]:
        return {"type": "boolean"}


@dataclass(frozen=True)
class ArrayField:
    items: "SchemaNode"
    min_items: int | None = None
    max_items: int | None = None

    def to_json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "array", "items": self.items.to_json_schema()}
        if self.min_items is not None:
            schema["minItems"] = self.min_items
        if self.max_items is not None:
            schema["maxItems"] = self.max_items
        return schema


@dataclass(frozen=True)
class ObjectField:
    fields: tuple[tuple[str, "SchemaNode"], ...]
    required: frozenset[str] | None = None

    @property
    def required_fields(self) -> frozenset[str]:
        # every declared field is required unless a narrower set is given
        if self.required is None:
            return frozenset(name for name, _ in self.fields)
        return self.required

    def field_names(self) -> list[str]:
        return [name for name, _ in self.fields]

    def to_json_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {name: node.to_json_schema() for name, node in self.fields},
            "required": [name for name, _ in self.fields if name in self.required_fields],
            "additionalProperties": False,
        }


SchemaNode = Union[StringField, NumberField, BooleanField, ArrayField, ObjectField]


def _obj(*fields: tuple[str, SchemaNode]) -> ObjectField:
    return ObjectField(fields=tuple(fields))


def _strings() -> ArrayField:
    return ArrayField(items=StringField())


LEVELS = ("Low", "Medium", "High")
BUYER_INTENTS = ("Informational", "Commercial", "Transactional")
MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

HISTORY_SERIES = ArrayField(
    items=_obj(("month", StringField()), ("value", NumberField())),
    min_items=len(MONTHS),
    max_items=len(MONTHS),
)

KEYWORD_SCHEMA = _obj(
    ("competition", StringField(enum=LEVELS)),
    ("search_volume", StringField(enum=LEVELS)),
    ("buyer_intent", StringField(enum=BUYER_INTENTS)),
    ("competition_score", NumberField(integer=True, minimum=0, maximum=100)),
    ("estimated_monthly_searches", NumberField(integer=True, minimum=0)),
    ("historical_data", HISTORY_SERIES),
    ("niche_suggestions", _strings()),
    ("long_tail_keywords", _strings()),
    ("suggested_tags", _strings()),
    ("product_ideas", _strings()),
)

SHOP_SCHEMA = _obj(
    ("shop_name", StringField()),
    ("niche", StringField()),
    ("estimated_monthly_sales", StringField()),
    ("top_keywords", _strings()),
    ("strengths", _strings()),
    ("areas_for_improvement", _strings()),
)

PRODUCT_SCHEMA = _obj(
    ("product_concept", StringField()),
    ("title_suggestion", StringField()),
    ("description_feedback", StringField()),
    ("pricing_suggestion", StringField()),
    ("monthly_sales", StringField()),
    ("monthly_revenue", StringField()),
    ("total_sales", NumberField()),
    ("listing_age", StringField()),
    ("reviews", NumberField()),
    ("views", NumberField()),
    ("favorites", NumberField()),
    ("monthly_reviews", StringField()),
    ("conversion_rate", StringField()),
    ("category", StringField()),
    ("visibility_score", StringField()),
    ("review_ratio", StringField()),
    (
        "tags_analysis",
        ArrayField(
            items=_obj(
                ("tag", StringField()),
                ("volume", StringField()),
                ("competition", StringField()),
                ("score", NumberField()),
            )
        ),
    ),
    (
        "listing_details",
        _obj(
            ("when_made", StringField()),
            ("listing_type", StringField()),
            ("customizable", BooleanField()),
            ("craft_supply", BooleanField()),
            ("personalized", BooleanField()),
            ("auto_renew", BooleanField()),
            ("has_variations", BooleanField()),
            ("title_character_count", NumberField(integer=True, minimum=0)),
            ("tags_count", NumberField(integer=True, minimum=0)),
            ("who_made", StringField()),
        ),
    ),
    (
        "historical_data",
        _obj(
            ("sales", HISTORY_SERIES),
            ("views", HISTORY_SERIES),
            ("favorites", HISTORY_SERIES),
        ),
    ),
    ("visibility_analysis", StringField()),
)

RANK_SCHEMA = _obj(
    ("estimated_rank", StringField()),
    ("rank_explanation", StringField()),
    ("improvement_suggestions", _strings()),
)

# Field for field the same shapes as the pydantic models in models.py;
# tests/test_schemas.py::test_fields_match_result_model keeps the two in step.
SCHEMAS: dict[QueryKind, ObjectField] = {
    QueryKind.KEYWORD: KEYWORD_SCHEMA,
    QueryKind.SHOP: SHOP_SCHEMA,
    QueryKind.PRODUCT: PRODUCT_SCHEMA,
    QueryKind.RANK: RANK_SCHEMA,
}


def get_schema(kind: QueryKind) -> ObjectField:
    return SCHEMAS[QueryKind(kind)]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate(node: SchemaNode, value: Any, path: str = "$") -> list[str]:
    """Walk ``value`` against ``node`` and collect every violation found.

    An empty list means the value conforms. Objects reject unknown keys and
    report each missing required key separately.
    """
    if isinstance(node, StringField):
        if not isinstance(value, str):
            return [f"{path}: expected string, got {type(value).__name__}"]
        if node.enum and value not in node.enum:
            return [f"{path}: {value!r} not one of {list(node.enum)}"]
        return []

    if isinstance(node, NumberField):
        if not _is_number(value):
            return [f"{path}: expected number, got {type(value).__name__}"]
        errors = []
        if node.integer and not float(value).is_integer():
            errors.append(f"{path}: expected integer, got {value!r}")
        if node.minimum is not None and value < node.minimum:
            errors.append(f"{path}: {value!r} is below minimum {node.minimum}")
        if node.maximum is not None and value > node.maximum:
            errors.append(f"{path}: {value!r} is above maximum {node.maximum}")
        return errors

    if isinstance(node, BooleanField):
        if not isinstance(value, bool):
            return [f"{path}: expected boolean, got {type(value).__name__}"]
        return []

    if isinstance(node, ArrayField):
        if not isinstance(value, list):
            return [f"{path}: expected array, got {type(value).__name__}"]
        errors = []
        if node.min_items is not None and len(value) < node.min_items:
            errors.append(f"{path}: expected at least {node.min_items} items, got {len(value)}")
        if node.max_items is not None and len(value) > node.max_items:
            errors.append(f"{path}: expected at most {node.max_items} items, got {len(value)}")
        for idx, item in enumerate(value):
            errors.extend(validate(node.items, item, f"{path}[{idx}]"))
        return errors

    if isinstance(node, ObjectField):
        if not isinstance(value, dict):
            return [f"{path}: expected object, got {type(value).__name__}"]
        errors = []
        declared = dict(node.fields)
        for name in node.field_names():
            if name not in value:
                if name in node.required_fields:
                    errors.append(f"{path}.{name}: missing required field")
                continue
            errors.extend(validate(declared[name], value[name], f"{path}.{name}"))
        for name in value:
            if name not in declared:
                errors.append(f"{path}.{name}: unexpected field")
        return errors

    raise TypeError(f"unsupported schema node: {type(node).__name__}")
