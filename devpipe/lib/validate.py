"""
JSON Schema checks for the files devpipe reads.

devpipe.env, interview question files and scripted answer files are checked
where they are loaded. Every violation in a document is collected, keyed by
the dotted location of the offending value, and reported together with the
file it came from.
"""

import json
from pathlib import Path

from jsonschema.validators import validator_for

SCHEMAS_DIR = Path(__file__).parent / "schemas"


class ValidationError(Exception):
    """An input document does not match its schema.

    Attributes:
        schema_name: Schema the document was checked against
        path: Location of the first violation ("questions.0.options")
        source: File the document was read from, if any
        problems: Every (location, message) pair found
    """

    def __init__(
        self,
        schema_name: str,
        message: str,
        path: str = None,
        source: Path = None,
        problems: list[tuple[str, str]] = None,
    ):
        self.schema_name = schema_name
        self.path = path
        self.source = source
        self.problems = problems or [(path, message)]

        text = f"[{schema_name}] {message}" + (f" at {path}" if path else "")
        if source:
            text = f"{source}: {text}"
        if len(self.problems) > 1:
            text += f" (and {len(self.problems) - 1} more)"
        super().__init__(text)

    def details(self) -> list[str]:
        """One "location: message" line per violation."""
        return [f"{loc}: {msg}" if loc else msg for loc, msg in self.problems]


_validators: dict = {}


def get_validator(schema_name: str):
    """Return a checked validator for a bundled schema, built once per name."""
    if schema_name not in _validators:
        schema_path = SCHEMAS_DIR / f"{schema_name}.schema.json"
        if not schema_path.is_file():
            raise ValidationError(schema_name, f"Schema file not found: {schema_path}")
        schema = json.loads(schema_path.read_text(encoding="utf-8"))
        cls = validator_for(schema)
        cls.check_schema(schema)
        _validators[schema_name] = cls(schema)
    return _validators[schema_name]


def _location(error) -> str:
    return ".".join(str(p) for p in error.absolute_path) or "(root)"


def validate(data, schema_name: str, source: Path = None) -> None:
    """
    Check data against a bundled schema ("config", "questions", "answers").

    Raises:
        ValidationError: listing every violation, first by location
    """
    errors = sorted(
        get_validator(schema_name).iter_errors(data),
        key=lambda e: [str(p) for p in e.absolute_path],
    )
    if not errors:
        return

    problems = [(_location(e), e.message) for e in errors]
    path, message = problems[0]
    raise ValidationError(schema_name, message, path, source=source, problems=problems)


def validate_file(filepath: Path, schema_name: str) -> dict:
    """
    Read a JSON document and check it against a bundled schema.

    Returns:
        The parsed document

    Raises:
        ValidationError: missing file, malformed JSON, or schema violations
    """
    filepath = Path(filepath)
    if not filepath.is_file():
        raise ValidationError(schema_name, f"File not found: {filepath}")

    try:
        data = json.loads(filepath.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(
            schema_name, f"Invalid JSON: {e.msg}", f"line {e.lineno}", source=filepath
        ) from None

    validate(data, schema_name, source=filepath)
    return data
