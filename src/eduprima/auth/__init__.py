"""Authentication and authorization.

Learn: Three pieces, leaf first:
1. resolver — who is this? (managed session first, legacy session second)
2. gate — may this principal reach this dashboard path?
3. dependencies — FastAPI glue that runs 1 and 2 per request

The principal is always passed explicitly (a request-scoped dependency),
never held in module state.
"""
