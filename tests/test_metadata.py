import pytest

import enumgen

FLUENT = '<attribute name="Macaron.FluentEnum.FluentAttribute" location="Color.cs(3,6)"/>'


def _parse_all(root):
    return [enumgen.parse_candidate(e) for e in enumgen.collect_candidates(root)]


def test_collect_candidates_rejects_unknown_root() -> None:
    import xml.etree.ElementTree as ET

    with pytest.raises(enumgen.MetadataError) as exc_info:
        enumgen.collect_candidates(ET.fromstring("<registry/>"))

    assert exc_info.value.code == "INVALID_ROOT"


def test_collect_candidates_walks_namespaces_and_types_in_document_order(
    make_metadata_root,
) -> None:
    root = make_metadata_root(
        '<enum name="Top"/>'
        '<namespace name="Demo">'
        '  <namespace name="Colors">'
        '    <enum name="Color"/>'
        '    <type name="Outer"><type name="Inner"><enum name="Shade"/></type></type>'
        "  </namespace>"
        "</namespace>"
    )

    entries = enumgen.collect_candidates(root)

    assert [e.label for e in entries] == [
        "Top",
        "Demo.Colors.Color",
        "Demo.Colors.Outer.Inner.Shade",
    ]


def test_parse_candidate_builds_container_chain(make_metadata_root) -> None:
    root = make_metadata_root(
        '<namespace name="Demo">'
        '  <type name="Outer" accessibility="public">'
        '    <type-parameter name="T" class="true" new="true">'
        "      <constraint-type>global::System.IDisposable</constraint-type>"
        "    </type-parameter>"
        '    <type name="Inner" accessibility="protected internal">'
        f'      <enum name="Color" accessibility="public">{FLUENT}</enum>'
        "    </type>"
        "  </type>"
        "</namespace>"
    )

    (candidate,) = _parse_all(root)

    chain = enumgen.nested_type_chain(candidate.symbol)
    assert [level.name for level in chain] == ["Outer", "Inner", "Color"]
    assert all(level.namespace == "Demo" for level in chain)
    assert [level.accessibility for level in chain] == [
        enumgen.Accessibility.PUBLIC,
        enumgen.Accessibility.OTHER,
        enumgen.Accessibility.PUBLIC,
    ]
    (parameter,) = chain[0].type_parameters
    assert parameter == enumgen.TypeParameterDescriptor(
        name="T",
        has_reference_type_constraint=True,
        has_constructor_constraint=True,
        constraint_types=("global::System.IDisposable",),
    )
    assert candidate.attributes == (
        enumgen.AttributeDescriptor(
            enumgen.FLUENT_ATTRIBUTE_DISPLAY_STRING, "Color.cs(3,6)"
        ),
    )


def test_parse_candidate_applies_csharp_default_accessibility(make_metadata_root) -> None:
    root = make_metadata_root(
        '<enum name="Top"/>'
        '<type name="Host" accessibility="public"><enum name="Nested"/></type>'
    )

    top, nested = _parse_all(root)

    assert top.symbol.accessibility is enumgen.Accessibility.INTERNAL
    assert nested.symbol.accessibility is enumgen.Accessibility.OTHER


def test_parse_candidate_reads_fields_with_defaults(make_metadata_root) -> None:
    root = make_metadata_root(
        '<enum name="Color">'
        '  <field name="value__" static="false" constant="false"/>'
        '  <field name="Red"/>'
        '  <field name="Green" static="TRUE"/>'
        "</enum>"
    )

    (candidate,) = _parse_all(root)

    assert candidate.fields == (
        enumgen.FieldDescriptor("value__", is_static=False, has_constant_value=False),
        enumgen.FieldDescriptor("Red"),
        enumgen.FieldDescriptor("Green"),
    )


@pytest.mark.parametrize(
    ("inner_xml", "code"),
    [
        ('<enum name=""/>', "MISSING_NAME"),
        ('<namespace><enum name="Color"/></namespace>', "MISSING_NAME"),
        ('<enum name="Color"><field/></enum>', "MISSING_NAME"),
        ('<enum name="Color" accessibility="friend"/>', "INVALID_ACCESSIBILITY"),
        ('<enum name="Color"><field name="Red" static="yes"/></enum>', "INVALID_BOOLEAN"),
        (
            '<type name="Box"><type-parameter name="T" class="1"/>'
            '<enum name="Color"/></type>',
            "INVALID_BOOLEAN",
        ),
    ],
)
def test_parse_candidate_reports_malformed_metadata(
    make_metadata_root, inner_xml: str, code: str
) -> None:
    (entry,) = enumgen.collect_candidates(make_metadata_root(inner_xml))

    with pytest.raises(enumgen.MetadataError) as exc_info:
        enumgen.parse_candidate(entry)

    assert exc_info.value.code == code
    assert exc_info.value.code in enumgen.VALID_METADATA_ERROR_CODES


def test_metadata_error_rejects_unknown_code() -> None:
    with pytest.raises(ValueError):
        enumgen.MetadataError("NOPE", "unknown")


def test_process_entries_isolates_malformed_candidates(make_metadata_root) -> None:
    root = make_metadata_root(
        f'<enum name="Broken" accessibility="friend">{FLUENT}<field name="A"/></enum>'
        f'<enum name="Color" accessibility="public">{FLUENT}<field name="Red"/></enum>'
    )

    outcomes, failures = enumgen.process_entries(enumgen.collect_candidates(root))

    assert [o.qualified_name for o in outcomes] == ["Color"]
    assert outcomes[0].status == enumgen.STATUS_GENERATED
    assert [(f.label, f.code) for f in failures] == [("Broken", "INVALID_ACCESSIBILITY")]
