import pytest

from schema_model import TypedNode


@pytest.fixture
def user_schema():
    """Object schema with three properties, two of them required."""
    return TypedNode(
        kind="object",
        properties=(
            ("name", TypedNode(kind="string", min_length=1)),
            ("email", TypedNode(kind="string", format="email")),
            ("age", TypedNode(kind="integer", minimum=0)),
        ),
        required=("name", "email"),
    )
