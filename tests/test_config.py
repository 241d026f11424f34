from __future__ import annotations

from pathlib import Path

from lmsetup.config import AgentConfig, ServerConfig, SetupConfig


def test_setup_defaults() -> None:
    cfg = SetupConfig()
    assert cfg.llama_cpp_root == Path("~/src/llama.cpp").expanduser()
    assert cfg.profile == Path("~/.bashrc").expanduser()
    assert cfg.repo_url.endswith("llama.cpp.git")
    assert cfg.cuda_archs == "61"
    assert cfg.jobs >= 1
    assert cfg.bin_dir == cfg.llama_cpp_root / "build" / "bin"


def test_setup_reads_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("LLAMA_CPP_ROOT", str(tmp_path / "llama"))
    monkeypatch.setenv("LMSETUP_PROFILE", str(tmp_path / ".profile"))
    monkeypatch.setenv("CUDA_ARCHS", "86")
    monkeypatch.setenv("BUILD_JOBS", "3")
    monkeypatch.setenv("LMSETUP_SUDO", "no")

    cfg = SetupConfig()

    assert cfg.llama_cpp_root == tmp_path / "llama"
    assert cfg.profile == tmp_path / ".profile"
    assert cfg.cuda_archs == "86"
    assert cfg.jobs == 3
    assert cfg.sudo is False


def test_invalid_int_falls_back_to_default(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "not-a-port")
    monkeypatch.setenv("N_GPU_LAYERS", "")
    cfg = ServerConfig()
    assert cfg.port == 8080
    assert cfg.n_gpu_layers == 29


def test_server_env_and_repr(monkeypatch) -> None:
    monkeypatch.setenv("MODEL_ALIAS", "tiny")
    monkeypatch.setenv("CTX_SIZE", "8192")
    monkeypatch.setenv("CHAT_TEMPLATE_FILE", "/tmp/t.jinja")

    cfg = ServerConfig()

    assert cfg.alias == "tiny"
    assert cfg.ctx_size == 8192
    assert "ctx=8192" in repr(cfg)
    assert "template='/tmp/t.jinja'" in repr(cfg)


def test_agent_completions_url(monkeypatch) -> None:
    monkeypatch.setenv("SERVER_URL", "http://gpu-box:9000/")
    monkeypatch.setenv("AGENT_MAX_TURNS", "5")
    cfg = AgentConfig()
    assert cfg.completions_url == "http://gpu-box:9000/v1/chat/completions"
    assert cfg.max_turns == 5
    assert cfg.timeout == 300
