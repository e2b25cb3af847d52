from __future__ import annotations

import unittest

from gatchacha.draw import (
    DEFAULT_WEIGHTING_REGISTRY,
    INVERTED_PERCENT,
    NOMINAL_PERCENT,
    WeightTransform,
    WeightingRegistry,
)


class WeightingRegistryTests(unittest.TestCase):
    def test_default_registry_contains_expected_transforms(self) -> None:
        available = DEFAULT_WEIGHTING_REGISTRY.available_transforms()
        self.assertIn(INVERTED_PERCENT, available)
        self.assertIn(NOMINAL_PERCENT, available)

    def test_inverted_percent_values(self) -> None:
        weights = [
            DEFAULT_WEIGHTING_REGISTRY.sampling_weight(INVERTED_PERCENT, p)
            for p in (0.5, 2.5, 10, 25, 62)
        ]
        self.assertEqual(weights, [100.5, 98.5, 91.0, 76.0, 39.0])

    def test_nominal_percent_is_identity(self) -> None:
        self.assertEqual(DEFAULT_WEIGHTING_REGISTRY.sampling_weight(NOMINAL_PERCENT, 2.5), 2.5)

    def test_custom_registry_registration(self) -> None:
        registry = WeightingRegistry()
        with self.assertRaises(KeyError):
            registry.get("missing")
        registry.register(DEFAULT_WEIGHTING_REGISTRY.get(INVERTED_PERCENT))
        with self.assertRaises(ValueError):
            registry.register(DEFAULT_WEIGHTING_REGISTRY.get(INVERTED_PERCENT))
        registry.register(
            WeightTransform(key=INVERTED_PERCENT, transform=lambda p: 1.0), replace=True
        )
        self.assertEqual(registry.sampling_weight(INVERTED_PERCENT, 62), 1.0)

    def test_negative_weight_is_rejected(self) -> None:
        transform = WeightTransform(key="broken", transform=lambda p: -p)
        with self.assertRaises(ValueError):
            transform.sampling_weight(10)


if __name__ == "__main__":
    unittest.main()
