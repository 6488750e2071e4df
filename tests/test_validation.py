from src.corpus.errors import MalformedDocument
from src.models.document import Document
from src.models.section import Example, Section
from src.validation import Severity, ValidationReport, ViolationCode, check_document, duplicate_ids, validate_documents
from src.validation.checks import unreadable


def test_clean_document_has_no_violations():
    document = Document(id="operators", title="Operators")
    document.add_section(Section(heading="", level=0, body="Preamble."))
    document.add_section(Section(heading="Operators", level=1))
    document.add_section(Section(heading="Arithmetic", level=2))
    document.add_section(Section(heading="Floor division", level=3))
    document.add_section(Section(heading="Comparison", level=2))

    assert check_document(document) == []


def test_heading_jump_is_a_warning():
    document = Document(id="functions", title="Functions")
    document.add_section(Section(heading="Functions", level=1, line=1))
    document.add_section(Section(heading="Lambdas", level=3, line=5))

    violations = check_document(document)

    assert len(violations) == 1
    assert violations[0].code is ViolationCode.HEADING_JUMP
    assert violations[0].severity is Severity.WARNING
    assert violations[0].section == "Lambdas"
    assert violations[0].line == 5


def test_violations_follow_document_order():
    document = Document(id="errors", title=" ")
    document.add_section(Section(heading="", level=2, line=3))
    try_section = Section(heading="Try", level=2, line=7)
    try_section.add_example(Example(source="try:", terminated=False, line=9))
    document.add_section(try_section)

    codes = [violation.code for violation in check_document(document)]

    assert codes == [ViolationCode.EMPTY_TITLE, ViolationCode.EMPTY_HEADING, ViolationCode.UNTERMINATED_FENCE]


def test_duplicate_ids_and_unreadable():
    violations = duplicate_ids(["b", "a", "b", "c", "a", "b"])
    assert [(v.document_id, v.message) for v in violations] == [
        ("a", "identifier is used by 2 sources"),
        ("b", "identifier is used by 3 sources"),
    ]

    violation = unreadable(MalformedDocument("broken", "front matter is never closed", line=1))
    assert violation.code is ViolationCode.UNREADABLE
    assert violation.kind == "MalformedDocument"
    assert violation.line == 1


def test_report_splits_severity():
    documents = [
        Document(id="a", title="", sections=[Section(heading="A", level=1)]),
        Document(id="b", title="B", sections=[Section(heading="B", level=1), Section(heading="Deep", level=4)]),
    ]
    report = ValidationReport(violations=validate_documents(documents), documents_checked=2)

    assert not report.ok
    assert len(report.errors) == 1
    assert len(report.warnings) == 1

    payload = report.to_dict()
    assert payload["ok"] is False
    assert payload["errors"] == 1
    assert payload["violations"][0]["code"] == "empty_title"
    assert payload["violations"][1]["severity"] == "warning"

    assert ValidationReport().ok
