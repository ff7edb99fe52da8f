import unittest

from datatypes import GroupFields
from errors import ValidationError
from inputvalidations import (
	find_missing_group_fields,
	validate_activity_options,
	validate_departments,
	validate_group_fields,
	validate_settings_payload,
)
from store_fixtures import group_fields


class TestGroupFieldValidation(unittest.TestCase):
	def setUp(self) -> None:
		self.names = GroupFields()

	def test_valid_group(self) -> None:
		self.assertEqual(find_missing_group_fields(group_fields(), self.names), [])
		validate_group_fields(group_fields(), self.names)

	def test_unit_count_must_be_positive_number(self) -> None:
		for bad in (0, -2, "3", True, None):
			with self.subTest(bad=bad):
				fields = group_fields(**{"Aantal Tafels": bad})
				self.assertEqual(find_missing_group_fields(fields, self.names), ["Aantal Tafels"])

	def test_delivery_date_must_parse(self) -> None:
		for bad in ("30-06-2025", "", 20250630, "2025-06-30 not a date", "2025-06-30T25:00"):
			with self.subTest(bad=bad):
				fields = group_fields(Leverdatum=bad)
				self.assertEqual(find_missing_group_fields(fields, self.names), ["Leverdatum"])
		fields = group_fields(Leverdatum="2025-06-30T00:00:00.000Z")
		self.assertEqual(find_missing_group_fields(fields, self.names), [])

	def test_optional_cast_count(self) -> None:
		self.assertEqual(find_missing_group_fields(group_fields(aantal_giet=2), self.names), [])
		self.assertEqual(find_missing_group_fields(group_fields(aantal_giet=0), self.names), ["aantal_giet"])

	def test_zero_hours_are_valid(self) -> None:
		fields = group_fields(BEK_uren_create=0, BEK_gem_u=0, TEK_fase_1_uren=0)
		self.assertEqual(find_missing_group_fields(fields, self.names), [])

	def test_negative_hours_and_rates_rejected(self) -> None:
		fields = group_fields(BEK_uren_create=-100, LAS_gem_u=-6, TEK_fase_1_uren=-0.5)
		self.assertEqual(
			find_missing_group_fields(fields, self.names),
			["BEK_uren_create", "LAS_gem_u", "TEK_fase_1_uren"],
		)

	def test_every_problem_reported(self) -> None:
		fields = group_fields(Naam="  ", GIET_gem_u="5", TEK_fase_2_uren=None)
		with self.assertRaises(ValidationError) as ctx:
			validate_group_fields(fields, self.names)
		self.assertEqual(ctx.exception.missing, ["GIET_gem_u", "TEK_fase_2_uren", "Naam"])
		self.assertTrue(str(ctx.exception).startswith("Missing/invalid on main record: "))
		self.assertIsInstance(ctx.exception, ValueError)


class TestLookupValidation(unittest.TestCase):
	def test_departments(self) -> None:
		validate_departments({"Rest": "rec1", "Beton": "rec2"}, ["Rest", "Beton"])
		with self.assertRaises(ValidationError) as ctx:
			validate_departments({"Rest": "rec1"}, ["Rest", "Beton", "Ontwerp"])
		self.assertEqual(ctx.exception.missing, ["Beton", "Ontwerp"])
		self.assertEqual(str(ctx.exception), "Missing departments: Beton, Ontwerp")

	def test_activity_options(self) -> None:
		validate_activity_options(["Rest", "Las", "Other"], ["Rest", "Las"])
		with self.assertRaises(ValidationError) as ctx:
			validate_activity_options(["Rest"], ["Rest", "Las"])
		self.assertEqual(ctx.exception.missing, ["Las"])

	def test_unknown_activity_options_skip_check(self) -> None:
		validate_activity_options(None, ["Rest"])
		validate_activity_options([], ["Rest"])


class TestSettingsValidation(unittest.TestCase):
	def test_empty_payload_ok(self) -> None:
		validate_settings_payload({})

	def test_rejects_bad_values(self) -> None:
		bad_payloads = [
			[],
			{"production_buffer_days": -1},
			{"production_buffer_days": 2.5},
			{"batch_size": 0},
			{"hours_per_day": True},
			{"extra_excluded_weekday": 7},
			{"efficiency_factor": 0},
			{"efficiency_factor": 1.5},
			{"extra_weekday_phases": ["polish"]},
			{"assignments": {"polish": {"department": "X", "activity": "Y"}}},
			{"assignments": {"weld": {"department": "X"}}},
			{"tables": "Bekistingen"},
		]
		for payload in bad_payloads:
			with self.subTest(payload=payload):
				with self.assertRaises(ValueError):
					validate_settings_payload(payload)


if __name__ == "__main__":
	unittest.main()
