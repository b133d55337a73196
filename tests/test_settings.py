import dataclasses

import pytest

from gcransac import GCRANSAC, InvalidConfigurationError, Settings, State


class TestSettings:

    def test_defaults(self):
        settings = Settings()
        assert settings.confidence == 0.95
        assert settings.threshold == 2.0
        assert settings.spatial_coherence_weight == 0.14
        assert settings.neighborhood_sphere_radius == 20.0
        assert settings.time_limit is None

    @pytest.mark.parametrize("changes", [
        {"confidence": 1.5},
        {"confidence": 0.0},
        {"confidence": 1.0},
        {"threshold": 0.0},
        {"threshold": -1.0},
        {"spatial_coherence_weight": -0.1},
        {"neighborhood_sphere_radius": 0.0},
        {"max_local_optimization_number": -1},
        {"min_iteration_number": 100, "max_iteration_number": 10},
        {"core_number": 0},
        {"fps": 0},
        {"fps": -2},
        {"neighborhood_space": "both"},
    ])
    def test_invalid_values_raise(self, changes):
        with pytest.raises(InvalidConfigurationError):
            Settings(**changes)

    def test_invalid_configuration_is_value_error(self):
        with pytest.raises(ValueError):
            Settings(confidence=1.5)

    def test_frozen(self):
        settings = Settings()
        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.threshold = 3.0

    def test_replace_validates(self):
        settings = Settings().replace(threshold=3.0)
        assert settings.threshold == 3.0
        with pytest.raises(InvalidConfigurationError):
            settings.replace(threshold=0)

    def test_time_limit_from_fps(self):
        assert Settings(fps=25).time_limit == pytest.approx(0.04)
        assert Settings(fps=-1).time_limit is None

    def test_engine_rejects_other_settings_objects(self):
        with pytest.raises(InvalidConfigurationError):
            GCRANSAC(settings={"threshold": 2.0})

    def test_engine_starts_initialized(self):
        gcransac = GCRANSAC()
        assert gcransac.state is State.INITIALIZED
        assert gcransac.statistics.iteration_number == 0
