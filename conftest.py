import os, yaml, pytest

@pytest.fixture(scope="session")
def cfg():
    with open(os.path.join(os.path.dirname(__file__), "tests", "config.yaml"), "r") as f:
        return yaml.safe_load(f)
