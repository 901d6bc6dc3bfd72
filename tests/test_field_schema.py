import pytest

from eventease_api.app.core.errors import ResponseValidationError, SchemaError
from eventease_api.app.schemas.field import (
    CheckboxField,
    FieldType,
    NumberField,
    SelectField,
    TextField,
)
from eventease_api.app.services.field_schema import (
    compile_fields,
    parse_int,
    validate_responses,
)


def sample_fields():
    return [
        TextField(id="field_1", name="Dietary Restrictions"),
        SelectField(id="field_2", name="T-Shirt Size", required=True, options=["Small", "Medium", "Large"]),
        CheckboxField(id="field_3", name="Send me updates"),
        NumberField(id="field_4", name="Guests"),
    ]


class TestCompile:
    def test_one_validator_per_field(self):
        schema = compile_fields(sample_fields())
        assert len(schema) == 4
        assert schema.field_ids == ["field_1", "field_2", "field_3", "field_4"]
        assert all(callable(f.validator) for f in schema)

    def test_defaults_by_type(self):
        schema = compile_fields(sample_fields())
        assert schema.defaults() == {"field_1": "", "field_2": "", "field_3": False, "field_4": None}

    def test_empty_sequence(self):
        schema = compile_fields([])
        assert len(schema) == 0
        assert validate_responses(schema, {"anything": 1}).values == {}

    def test_select_without_options_fails(self):
        with pytest.raises(SchemaError) as exc_info:
            compile_fields([SelectField(id="f1", name="Size", options=[])])
        assert "no options" in exc_info.value.problems[0]

    def test_duplicate_ids_fail(self):
        with pytest.raises(SchemaError) as exc_info:
            compile_fields([TextField(id="f1", name="A"), NumberField(id="f1", name="B")])
        assert exc_info.value.problems == ["Duplicate field id 'f1'"]

    def test_all_problems_reported(self):
        fields = [
            SelectField(id="f1", name="Size"),
            TextField(id="f2", name="A"),
            TextField(id="f2", name="B"),
        ]
        with pytest.raises(SchemaError) as exc_info:
            compile_fields(fields)
        assert len(exc_info.value.problems) == 2

    def test_schema_error_is_value_error(self):
        with pytest.raises(ValueError):
            compile_fields([SelectField(id="f1", name="Size")])

    def test_accepts_mappings(self):
        schema = compile_fields([
            {"id": "f1", "name": "Size", "type": "select", "options": "S, M, L", "required": True},
            {"id": "f2", "name": "Notes", "type": "text"},
        ])
        assert schema.get("f1").options == ["S", "M", "L"]
        assert schema.get("f2").type == FieldType.TEXT

    def test_unknown_type_in_mapping_fails(self):
        with pytest.raises(SchemaError):
            compile_fields([{"id": "f1", "name": "Date", "type": "date"}])

    def test_deterministic(self):
        assert compile_fields(sample_fields()) == compile_fields(sample_fields())

    def test_snapshot_is_independent_of_source_list(self):
        fields = sample_fields()
        schema = compile_fields(fields)
        fields.append(TextField(id="field_5", name="Late addition"))
        fields.pop(0)
        assert schema.field_ids == ["field_1", "field_2", "field_3", "field_4"]

    def test_render_metadata(self):
        schema = compile_fields([
            SelectField(id="f1", name="Size", required=True, options=["S", "M"]),
            CheckboxField(id="f2", name="Updates", required=True),
        ])
        rendered = schema.render()
        assert rendered[0].type == FieldType.SELECT
        assert rendered[0].options == ["S", "M"]
        assert rendered[0].required is True
        assert rendered[1].options is None
        # Checkbox ``required`` is not enforced and not advertised.
        assert rendered[1].required is False
        assert rendered[1].default is False


class TestValidateText:
    @pytest.mark.parametrize("value", ["", "   ", "\t\n"])
    def test_required_blank_fails(self, value):
        schema = compile_fields([TextField(id="f1", name="Company", required=True)])
        result = validate_responses(schema, {"f1": value})
        assert not result.ok
        assert [e.field_id for e in result.errors] == ["f1"]

    def test_required_non_blank_passes(self):
        schema = compile_fields([TextField(id="f1", name="Company", required=True)])
        result = validate_responses(schema, {"f1": " Acme "})
        assert result.ok
        assert result.values == {"f1": " Acme "}

    def test_optional_absent_uses_default(self):
        schema = compile_fields([TextField(id="f1", name="Notes")])
        result = validate_responses(schema, {})
        assert result.ok
        assert result.values == {"f1": ""}

    def test_required_absent_fails(self):
        schema = compile_fields([TextField(id="f1", name="Company", required=True)])
        assert not validate_responses(schema, {}).ok

    def test_wrong_type_rejected(self):
        schema = compile_fields([TextField(id="f1", name="Notes")])
        result = validate_responses(schema, {"f1": 12})
        assert result.errors[0].message == "Notes must be text"


class TestValidateNumber:
    @pytest.mark.parametrize("raw,expected", [
        ("42", 42),
        (" 7", 7),
        ("-3", -3),
        ("+5", 5),
        ("12abc", 12),
        ("3.9", 3),
        (8, 8),
        (2.5, 2),
    ])
    def test_parses_base_ten(self, raw, expected):
        schema = compile_fields([NumberField(id="n", name="Guests", required=True)])
        result = validate_responses(schema, {"n": raw})
        assert result.ok
        assert result.values["n"] == expected

    @pytest.mark.parametrize("raw", ["abc", "", "  ", "x1", True])
    def test_required_non_numeric_fails(self, raw):
        schema = compile_fields([NumberField(id="n", name="Guests", required=True)])
        result = validate_responses(schema, {"n": raw})
        assert not result.ok
        assert result.errors[0].field_id == "n"

    def test_optional_blank_is_none(self):
        schema = compile_fields([NumberField(id="n", name="Guests")])
        assert validate_responses(schema, {"n": ""}).values == {"n": None}
        assert validate_responses(schema, {}).values == {"n": None}

    def test_optional_garbage_fails(self):
        schema = compile_fields([NumberField(id="n", name="Guests")])
        result = validate_responses(schema, {"n": "many"})
        assert result.errors[0].message == "Guests must be a number"

    @pytest.mark.parametrize("digits", [400, 5000])
    def test_too_large_is_not_a_number(self, digits):
        schema = compile_fields([NumberField(id="n", name="Guests")])
        result = validate_responses(schema, {"n": "9" * digits})
        assert result.errors[0].message == "Guests must be a number"

    def test_leading_zeros_do_not_count_towards_size(self):
        assert parse_int("0" * 400 + "12") == 12
        assert parse_int("9" * 308) == int("9" * 308)
        assert parse_int(10 ** 400) is None

    def test_parse_int_helper(self):
        assert parse_int("0x10") == 0
        assert parse_int(float("inf")) is None
        assert parse_int(False) is None
        assert parse_int(None) is None
        assert parse_int("١") is None


class TestValidateSelect:
    def test_end_to_end_select(self):
        schema = compile_fields([
            {"id": "f1", "name": "Size", "type": "select", "required": True, "options": ["S", "M", "L"]},
        ])
        failed = validate_responses(schema, {})
        assert not failed.ok
        assert len(failed.errors) == 1
        assert failed.errors[0].field_id == "f1"
        assert failed.errors[0].message == "must select one of S, M, L"

        passed = validate_responses(schema, {"f1": "M"})
        assert passed.ok
        assert passed.values == {"f1": "M"}

    def test_required_unknown_option_fails(self):
        schema = compile_fields([SelectField(id="f1", name="Size", required=True, options=["S", "M"])])
        assert not validate_responses(schema, {"f1": "XL"}).ok

    def test_optional_no_selection_passes(self):
        schema = compile_fields([SelectField(id="f1", name="Size", options=["S", "M"])])
        assert validate_responses(schema, {}).values == {"f1": ""}

    def test_optional_unknown_option_fails(self):
        schema = compile_fields([SelectField(id="f1", name="Size", options=["S", "M"])])
        assert not validate_responses(schema, {"f1": "XL"}).ok


class TestValidateCheckbox:
    @pytest.mark.parametrize("required", [True, False])
    @pytest.mark.parametrize("value", [True, False, None])
    def test_never_fails_for_booleans(self, required, value):
        schema = compile_fields([CheckboxField(id="c", name="Updates", required=required)])
        responses = {} if value is None else {"c": value}
        result = validate_responses(schema, responses)
        assert result.ok
        assert result.values == {"c": bool(value)}

    def test_non_boolean_is_a_type_mismatch(self):
        schema = compile_fields([CheckboxField(id="c", name="Updates")])
        assert not validate_responses(schema, {"c": "yes"}).ok


class TestValidateAggregate:
    def test_errors_follow_definition_order(self):
        schema = compile_fields([
            TextField(id="A", name="A", required=True),
            NumberField(id="B", name="B", required=True),
        ])
        responses = {"B": "abc", "A": ""}
        result = validate_responses(schema, responses)
        assert [e.field_id for e in result.errors] == ["A", "B"]

    def test_no_partial_success(self):
        schema = compile_fields(sample_fields())
        result = validate_responses(schema, {"field_1": "None", "field_2": "Huge"})
        assert not result.ok
        assert result.values == {}

    def test_full_typed_mapping_on_success(self):
        schema = compile_fields(sample_fields())
        result = validate_responses(schema, {"field_2": "Medium", "field_4": "3", "extra": "ignored"})
        assert result.values == {"field_1": "", "field_2": "Medium", "field_3": False, "field_4": 3}

    def test_idempotent_and_pure(self):
        schema = compile_fields(sample_fields())
        responses = {"field_1": "Vegan", "field_2": "Small", "field_4": "2"}
        before = dict(responses)
        first = validate_responses(schema, responses)
        second = validate_responses(schema, responses)
        assert first == second
        assert responses == before
        assert schema == compile_fields(sample_fields())

    def test_raise_for_errors(self):
        schema = compile_fields([TextField(id="A", name="A", required=True)])
        with pytest.raises(ResponseValidationError) as exc_info:
            validate_responses(schema, {}).raise_for_errors()
        assert exc_info.value.errors[0].field_id == "A"
        assert schema.validate({"A": "x"}).raise_for_errors() == {"A": "x"}

    def test_revalidation_after_fix(self):
        schema = compile_fields([TextField(id="A", name="A", required=True)])
        assert not schema.validate({"A": ""}).ok
        assert schema.validate({"A": "fixed"}).ok
