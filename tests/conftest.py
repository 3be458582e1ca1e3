import argparse
import sys
import xml.etree.ElementTree as ET
from collections.abc import Callable
from pathlib import Path

import pytest

GENERATOR_DIR = Path(__file__).resolve().parent.parent
if str(GENERATOR_DIR) not in sys.path:
    sys.path.insert(0, str(GENERATOR_DIR))

import enumgen  # noqa: E402


@pytest.fixture
def metadata_path(tmp_path: Path) -> Path:
    metadata = tmp_path / "enum-metadata.xml"
    metadata.write_text("<compilation />\n", encoding="utf-8")
    return metadata


@pytest.fixture
def make_args(metadata_path: Path, tmp_path: Path) -> Callable[..., argparse.Namespace]:
    def _make_args(**overrides: object) -> argparse.Namespace:
        base_args: dict[str, object] = {
            "metadata": metadata_path,
            "output_dir": tmp_path / "out",
            "indent_size": None,
            "skip_attribute": False,
            "list_enums": False,
            "filter": None,
        }
        base_args.update(overrides)
        return argparse.Namespace(**base_args)

    return _make_args


@pytest.fixture
def make_metadata_root() -> Callable[[str], ET.Element]:
    def _make_metadata_root(inner_xml: str) -> ET.Element:
        return ET.fromstring(f"<compilation>{inner_xml}</compilation>")

    return _make_metadata_root


@pytest.fixture
def make_type_parameter() -> Callable[..., enumgen.TypeParameterDescriptor]:
    def _make_type_parameter(
        name: str = "T",
        *,
        reference: bool = False,
        value: bool = False,
        unmanaged: bool = False,
        constructor: bool = False,
        not_null: bool = False,
        constraint_types: tuple[str, ...] = (),
    ) -> enumgen.TypeParameterDescriptor:
        return enumgen.TypeParameterDescriptor(
            name=name,
            has_reference_type_constraint=reference,
            has_value_type_constraint=value,
            has_unmanaged_type_constraint=unmanaged,
            has_constructor_constraint=constructor,
            has_not_null_constraint=not_null,
            constraint_types=constraint_types,
        )

    return _make_type_parameter


@pytest.fixture
def make_chain() -> Callable[..., enumgen.ContainerTypeDescriptor]:
    """Build an enum descriptor nested in the given containers.

    Containers are (name, type_parameters, accessibility) tuples, outermost
    first. Returns the enum's own descriptor.
    """

    def _make_chain(
        enum_name: str = "Color",
        containers: tuple[
            tuple[str, tuple[enumgen.TypeParameterDescriptor, ...], enumgen.Accessibility],
            ...,
        ] = (),
        *,
        namespace: str = "Demo",
        accessibility: enumgen.Accessibility = enumgen.Accessibility.PUBLIC,
    ) -> enumgen.ContainerTypeDescriptor:
        parent = None
        for name, type_parameters, container_accessibility in containers:
            parent = enumgen.ContainerTypeDescriptor(
                name=name,
                type_parameters=type_parameters,
                containing_type=parent,
                accessibility=container_accessibility,
                namespace=namespace,
            )
        return enumgen.ContainerTypeDescriptor(
            name=enum_name,
            containing_type=parent,
            accessibility=accessibility,
            namespace=namespace,
        )

    return _make_chain


@pytest.fixture
def make_candidate(
    make_chain: Callable[..., enumgen.ContainerTypeDescriptor],
) -> Callable[..., enumgen.EnumCandidate]:
    def _make_candidate(
        enum_name: str = "Color",
        members: tuple[str, ...] = ("Red", "Green", "Blue"),
        *,
        fluent: bool = True,
        flags: bool = False,
        symbol: enumgen.ContainerTypeDescriptor | None = None,
        fields: tuple[enumgen.FieldDescriptor, ...] | None = None,
        **chain_kwargs: object,
    ) -> enumgen.EnumCandidate:
        attributes = []
        if fluent:
            attributes.append(
                enumgen.AttributeDescriptor(
                    enumgen.FLUENT_ATTRIBUTE_DISPLAY_STRING, "Color.cs(3,6)"
                )
            )
        if flags:
            attributes.append(
                enumgen.AttributeDescriptor(enumgen.FLAGS_ATTRIBUTE_DISPLAY_STRING)
            )
        if fields is None:
            fields = tuple(enumgen.FieldDescriptor(name) for name in members)
        return enumgen.EnumCandidate(
            symbol=symbol or make_chain(enum_name, **chain_kwargs),
            attributes=tuple(attributes),
            fields=fields,
        )

    return _make_candidate
