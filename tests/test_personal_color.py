import unittest

from src.analyzers import (
    PersonalColor,
    PersonalColorThresholds,
    SkinTone,
    classify_personal_color,
    color_metrics,
)
from src.analyzers.personal_color import DEFAULT_PALETTES, lab_metrics, palette_for


class ColorMetricsTests(unittest.TestCase):
    def test_metrics_for_warm_light_skin(self) -> None:
        m = color_metrics(220, 180, 150)
        self.assertAlmostEqual(m["warmth"], 70 / 255)
        self.assertAlmostEqual(m["brightness"], 550 / 765)
        self.assertAlmostEqual(m["saturation"], 70 / 220)

    def test_black_has_zero_saturation(self) -> None:
        self.assertEqual(color_metrics(0, 0, 0)["saturation"], 0.0)


class ClassifyPersonalColorTests(unittest.TestCase):
    def test_scenario_warm_bright_spring(self) -> None:
        tone = SkinTone.from_rgb(220, 180, 150)
        self.assertEqual(classify_personal_color(tone), PersonalColor.SPRING_WARM_BRIGHT)

    def test_each_branch(self) -> None:
        cases = {
            (230, 200, 190): PersonalColor.SPRING_WARM_MUTED,
            (150, 90, 60): PersonalColor.AUTUMN_WARM_BRIGHT,
            (140, 120, 110): PersonalColor.AUTUMN_WARM_MUTED,
            (160, 190, 230): PersonalColor.SUMMER_COOL_BRIGHT,
            (190, 185, 180): PersonalColor.SUMMER_COOL_MUTED,
            (60, 70, 120): PersonalColor.WINTER_COOL_BRIGHT,
            (100, 100, 100): PersonalColor.WINTER_COOL_MUTED,
        }
        for rgb, expected in cases.items():
            with self.subTest(rgb=rgb):
                self.assertEqual(classify_personal_color(rgb), expected)

    def test_slightly_warm_skin_is_still_cool(self) -> None:
        # warmth 20 / 255 ~ 0.078
        self.assertEqual(classify_personal_color((120, 120, 100)).tone, "Cool")

    def test_repeated_calls_agree(self) -> None:
        tone = SkinTone.from_rgb(180, 140, 120)
        first = classify_personal_color(tone)
        for _ in range(20):
            self.assertIs(classify_personal_color(tone), first)

    def test_thresholds_are_configurable(self) -> None:
        rgb = (220, 180, 150)
        never_warm = PersonalColorThresholds(warm=1.0)
        self.assertEqual(classify_personal_color(rgb, never_warm).tone, "Cool")


class SeasonMetadataTests(unittest.TestCase):
    def test_season_and_tone(self) -> None:
        self.assertEqual(PersonalColor.AUTUMN_WARM_MUTED.season, "Autumn")
        self.assertEqual(PersonalColor.WINTER_COOL_BRIGHT.tone, "Cool")

    def test_every_category_has_a_palette(self) -> None:
        for category in PersonalColor:
            self.assertEqual(palette_for(category), DEFAULT_PALETTES[category.season])

    def test_lab_metrics_for_light_skin(self) -> None:
        lab = lab_metrics(SkinTone.from_rgb(220, 180, 150))
        self.assertGreater(lab["L"], 70.0)
        self.assertGreater(lab["b"], 0.0)
        self.assertEqual(set(lab), {"L", "a", "b", "ITA"})


if __name__ == "__main__":
    unittest.main()
