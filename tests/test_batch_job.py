import json

import pytest
from PIL import Image

from leaf_generator import InvalidSeedError
from leaf_generator.batch_job import export_name, main


def _write_config(tmp_path):
    p = tmp_path / "cfg.json"
    p.write_text(json.dumps({"n_points": 30, "cell_count": 8, "stipple_draws": 1000}), encoding="utf-8")
    return str(p)


def test_export_name():
    assert export_name("a") == "cordate-leaf-a.png"
    assert export_name("x/y z") == "cordate-leaf-x_y_z.png"


def test_batch_renders_explicit_seeds(tmp_path, capsys):
    out = tmp_path / "out"
    store = tmp_path / "store"
    rc = main(["--out-dir", str(out), "--seed", "a", "--seed", "12",
               "--config-file", _write_config(tmp_path), "--store-dir", str(store)])
    assert rc == 0
    for s in ("a", "12"):
        with Image.open(out / f"cordate-leaf-{s}.png") as im:
            assert im.size == (1000, 700)
            assert im.mode == "RGBA"
    # overridden sample counts never land in the seed-keyed store
    assert not (store / "leaf-a.png").exists()
    assert "[batch_job] n_images=2" in capsys.readouterr().out


def test_batch_uses_seed_range(tmp_path):
    out = tmp_path / "out"
    main(["--out-dir", str(out), "--n-images", "2", "--seed-base", "100",
          "--config-file", _write_config(tmp_path)])
    assert sorted(p.name for p in out.iterdir()) == ["cordate-leaf-100.png", "cordate-leaf-101.png"]


def test_batch_rejects_bad_seed_before_rendering(tmp_path):
    out = tmp_path / "out"
    with pytest.raises(InvalidSeedError):
        main(["--out-dir", str(out), "--seed", "1", "--seed", " "])
    assert list(out.iterdir()) == []
