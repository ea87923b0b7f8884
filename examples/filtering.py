"""Filtering, searching and paging fetched records.

FilterEngine works on any list of mappings or objects, so it can be
applied to a scheduler's items or to plain data.
"""

from freshsync import (
    FieldType,
    FieldValidation,
    FilterEngine,
    FilterExpression,
    FilterField,
    FilterGroup,
    FilterLogic,
    FilterState,
    SortOrder,
)


companies = [
    {"name": "Acme", "city": "Oslo", "score": 7, "tier": "gold"},
    {"name": "Globex", "city": "Bergen", "score": 3, "tier": "silver"},
    {"name": "Initech", "city": "Oslo", "score": 9, "tier": None},
    {"name": "Umbrella", "city": "Trondheim", "score": 5, "tier": "gold"},
]

engine = FilterEngine(search_fields=("name", "city"))

# Score above 4 AND (city is Oslo OR tier is gold), best first
min_score = FilterExpression(id="min", field="score", operator="greater", value=4)
in_oslo = FilterExpression(id="oslo", field="city", operator="equals", value="Oslo")
is_gold = FilterExpression(id="gold", field="tier", operator="equals", value="gold")

where = FilterGroup(id="where", logic=FilterLogic.OR, expressions=(in_oslo, is_gold))

state = FilterState(
    expressions=(min_score,),
    groups=(where,),
    sort_by="score",
    sort_order=SortOrder.DESC,
    page_size=2,
)

result = engine.apply(companies, state)
print([c["name"] for c in result.items])  # ['Initech', 'Acme']
print(f"page {result.current_page + 1} of {result.total_pages}")

# Free-text search is case-insensitive over the search fields
print(engine.summarize(companies, FilterState(global_search="oslo")))

# Validate user input before applying it
fields = [
    FilterField(key="score", type=FieldType.NUMBER, validation=FieldValidation(max=10)),
]
too_high = FilterExpression(id="x", field="score", operator="greater", value=50)
bad = FilterState(expressions=(too_high,))
for issue in engine.validate(bad, fields).errors:
    print(f"{issue.field}: {issue.message}")
