# lmsetup/install/__init__.py
from __future__ import annotations
from .cuda import install_cuda
from .llama_build import build_llama_cpp
from .models_fetch import download_model

__all__ = ["build_llama_cpp", "download_model", "install_cuda"]
