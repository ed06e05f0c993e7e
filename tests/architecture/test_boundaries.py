from pytest_archon import archrule

_PURE_MODULES = (
    "sqs_template.exceptions",
    "sqs_template.headers",
    "sqs_template.message",
    "sqs_template.options",
    "sqs_template.results",
    "sqs_template.serialization",
)


def test_value_types_are_transport_free() -> None:
    """
    Messages, options, results and the payload converter never touch the
    AWS client libraries; only connection and metadata resolution do.
    """
    for module in _PURE_MODULES:
        (
            archrule(f"{module}_is_transport_free")
            .match(module)
            .should_not_import("aiobotocore*")
            .should_not_import("botocore*")
            .check("sqs_template")
        )


def test_value_types_do_not_depend_on_facades() -> None:
    """
    Lower layers must not import the template facades.
    """
    for module in _PURE_MODULES:
        (
            archrule(f"{module}_below_facades")
            .match(module)
            .should_not_import("sqs_template.template")
            .should_not_import("sqs_template.blocking")
            .should_not_import("sqs_template.acknowledgement")
            .check("sqs_template")
        )


def test_async_template_is_independent_of_blocking_facade() -> None:
    (
        archrule("template_not_blocking")
        .match("sqs_template.template")
        .should_not_import("sqs_template.blocking")
        .check("sqs_template")
    )


def test_library_never_imports_test_doubles() -> None:
    """
    The in-memory client is for tests only.
    """
    (
        archrule("testing_is_leaf")
        .match("sqs_template*")
        .exclude("sqs_template.testing")
        .should_not_import("sqs_template.testing")
        .check("sqs_template")
    )
