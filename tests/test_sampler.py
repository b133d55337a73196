import numpy as np

from sampler import UniformSampler
from utils.uniform_random_generator import UniformRandomGenerator


class TestUniformSampler:

    def test_samples_are_distinct_pool_members(self):
        sampler = UniformSampler(np.zeros((100, 4)), random_seed=3)
        pool = list(range(10, 60))
        for _ in range(200):
            sample = sampler.sample(pool, 7)
            assert len(sample) == 7
            assert len(set(sample)) == 7
            assert all(idx in pool for idx in sample)

    def test_seed_makes_sampling_reproducible(self):
        pool = list(range(100))
        first = UniformSampler(np.zeros((100, 4)), random_seed=42)
        second = UniformSampler(np.zeros((100, 4)), random_seed=42)
        assert [first.sample(pool, 7) for _ in range(20)] == [second.sample(pool, 7) for _ in range(20)]

    def test_small_pool_gives_empty_sample(self):
        sampler = UniformSampler(np.zeros((5, 4)), random_seed=0)
        assert sampler.sample([0, 1, 2], 4) == []
        assert sorted(sampler.sample([0, 1, 2], 3)) == [0, 1, 2]

    def test_every_index_is_drawn(self):
        sampler = UniformSampler(np.zeros((20, 4)), random_seed=1)
        drawn = set()
        for _ in range(100):
            drawn.update(sampler.sample(list(range(20)), 4))
        assert drawn == set(range(20))


class TestUniformRandomGenerator:

    def test_range(self):
        generator = UniformRandomGenerator(random_seed=5)
        for _ in range(50):
            values = generator.generateUniqueRandomSet(5, max=9)
            assert len(set(values)) == 5
            assert all(0 <= value <= 9 for value in values)

    def test_not_enough_values(self):
        generator = UniformRandomGenerator(random_seed=5)
        assert generator.generateUniqueRandomSet(6, max=4) == []
