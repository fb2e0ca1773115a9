import json

import numpy as np
import pytest

from conftest import random_hand
from samples import CLONE_SIGN, NOT_SIGN
from trainer import TrainerApp, mirror_pose


def test_key_starts_countdown(tmp_path):
    app = TrainerApp(str(tmp_path / "d.json"), str(tmp_path / "m.joblib"))
    app.handle_key(ord("1"), 0.0)
    assert app.recorder.state == "countdown"
    assert app.recorder.label == CLONE_SIGN


def test_train_without_data_reports(tmp_path):
    app = TrainerApp(str(tmp_path / "d.json"), str(tmp_path / "m.joblib"))
    assert app.train() is False
    assert "at least" in app.status
    assert app.save() is False


def test_step_records_and_finishes(tmp_path, rng):
    app = TrainerApp(str(tmp_path / "d.json"), str(tmp_path / "m.joblib"))
    right, left = random_hand(rng), random_hand(rng)
    app.handle_key(ord("2"), 0.0)
    app.step(right, left, 100.0)
    assert app.store.counts()[NOT_SIGN] == 0
    app.step(right, left, 3100.0)
    app.step(right, left, 3200.0)
    assert app.store.counts()[NOT_SIGN] == 2
    badge, prob = app.step(right, left, 8000.0)
    assert badge == ""
    assert prob is None
    assert app.status.startswith("Done!")


def test_import_missing_file(tmp_path):
    app = TrainerApp(str(tmp_path / "none.json"), str(tmp_path / "m.joblib"))
    assert app.import_data() is False


@pytest.mark.filterwarnings("ignore::sklearn.exceptions.ConvergenceWarning")
def test_train_then_save(tmp_path, rng):
    app = TrainerApp(str(tmp_path / "d.json"), str(tmp_path / "m.joblib"), seed=0)
    for _ in range(6):
        app.store.add(CLONE_SIGN, np.full(126, 1.0))
        app.store.add(NOT_SIGN, np.full(126, -1.0))
    assert app.train() is True
    assert app.save() is True
    assert (tmp_path / "m.joblib").exists()
    _, prob = app.step(random_hand(rng), random_hand(rng), 0.0)
    assert 0.0 <= prob <= 1.0


def test_mirror_pose_flips_x(rng):
    pose = random_hand(rng)
    flipped = mirror_pose(pose)
    assert np.allclose(flipped[:, 0], 1.0 - pose[:, 0])
    assert np.allclose(flipped[:, 1:], pose[:, 1:])


@pytest.mark.parametrize("payload", [[[0.0] * 126], {CLONE_SIGN: [[0.0] * 3] * 6, NOT_SIGN: [[1.0] * 3] * 6}])
def test_import_malformed_file_is_reported(tmp_path, payload):
    path = tmp_path / "d.json"
    path.write_text(json.dumps(payload))
    app = TrainerApp(str(path), str(tmp_path / "m.joblib"))
    assert app.import_data() is False
    assert app.status == "Import failed."
    assert app.store.counts() == {CLONE_SIGN: 0, NOT_SIGN: 0}
    assert app.train() is False


def test_preview_scoring_error_is_contained(tmp_path, rng):
    class Broken:
        ready = True

        def predict(self, vector):
            raise RuntimeError("boom")

    app = TrainerApp(str(tmp_path / "d.json"), str(tmp_path / "m.joblib"))
    app.model = Broken()
    app.detector.model = app.model
    badge, prob = app.step(random_hand(rng), random_hand(rng), 0.0)
    assert prob is None
