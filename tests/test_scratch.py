"""Tests for per-job scratch slots."""

from clipflow.scratch import ScratchArena


class TestScratchArena:
    def test_slots_are_unique_per_job(self, tmp_path):
        arena = ScratchArena(tmp_path)
        with arena.slot("job1") as a, arena.slot("job2") as b:
            assert a != b
            assert a.is_dir() and b.is_dir()
            assert a.name.startswith("clipflow_job1_")

    def test_same_job_id_twice_still_unique(self, tmp_path):
        arena = ScratchArena(tmp_path)
        with arena.slot("job") as a, arena.slot("job") as b:
            assert a != b

    def test_slot_released_on_exit(self, tmp_path):
        arena = ScratchArena(tmp_path)
        with arena.slot("job") as slot:
            (slot / "job.wav").write_bytes(b"RIFF")
        assert not slot.exists()

    def test_env_root(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CLIPFLOW_SCRATCH_DIR", str(tmp_path / "scratch"))
        assert ScratchArena().root == tmp_path / "scratch"
