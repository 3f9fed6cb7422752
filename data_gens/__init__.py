TASKS = {
    "xor": "classification",
    "spiral": "regression",
}


def get_generator(name: str):
    """Return a standardized generator callable with signature:
    gen(n_samples=400, noise_level=0.1, random_state=42) -> (X, y)
    """
    name = name.lower()
    if name in {"xor", "xor_data", "parity"}:
        from data_gens.xor_data import generate_xor_data as _gen
        def _wrap_xor(n_samples=400, noise_level=0.1, random_state=42):
            return _gen(n_samples=n_samples, noise_level=noise_level, random_state=random_state)
        return _wrap_xor

    if name in {"spiral", "spiral_regression", "default"}:
        from data_gens.spiral_regression import generate_spiral_regression as _gen
        def _wrap_spiral(n_samples=400, noise_level=0.1, random_state=42):
            return _gen(N=n_samples, noise_level=noise_level, random_state=random_state)
        return _wrap_spiral

    raise ValueError(f"Unknown dataset generator name: {name}")


def task_for(name: str) -> str:
    name = name.lower()
    if name in {"xor", "xor_data", "parity"}:
        return TASKS["xor"]
    if name in {"spiral", "spiral_regression", "default"}:
        return TASKS["spiral"]
    raise ValueError(f"Unknown dataset generator name: {name}")
