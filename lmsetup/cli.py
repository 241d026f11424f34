# lmsetup/cli.py

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Callable, Optional

import requests
import typer

from .bootstrap import CommandRunner, Failed, InstallResult, Skipped
from .config import AgentConfig, ServerConfig, SetupConfig

cli = typer.Typer(
    add_completion=False,
    help="CLI principal de LMSetup. Usa ‘lmsetup <comando> --help’ para detalles.",
    no_args_is_help=True,
)

# ───────────────── Opciones ─────────────────

# --- Opciones de instalación ---
ProfileOpt = Annotated[Optional[Path], typer.Option("--profile", help="Fichero de perfil donde añadir el bloque de entorno (LMSETUP_PROFILE).", rich_help_panel="Opciones de Instalación")]
CudaArchsOpt = Annotated[Optional[str], typer.Option("--cuda-archs", help="Arquitecturas CUDA, p. ej. 61 (CUDA_ARCHS).", rich_help_panel="Opciones de Instalación")]
RootOpt = Annotated[Optional[Path], typer.Option("--root", help="Directorio del checkout de llama.cpp (LLAMA_CPP_ROOT).", rich_help_panel="Opciones de Build")]
JobsOpt = Annotated[Optional[int], typer.Option("--jobs", "-j", min=1, help="Hilos de compilación (BUILD_JOBS).", rich_help_panel="Opciones de Build")]
CudaOpt = Annotated[bool, typer.Option("--cuda/--no-cuda", help="Compilar con soporte CUDA (GGML_CUDA).", rich_help_panel="Opciones de Build")]
ForceOpt = Annotated[bool, typer.Option("--force", help="Recompilar aunque llama-server ya exista.", rich_help_panel="Opciones de Build")]

# --- Opciones del servidor ---
ModelOpt = Annotated[Optional[Path], typer.Option("--model", "-m", help="Ruta al .gguf (MODEL).", rich_help_panel="Parámetros del Modelo")]
AliasOpt = Annotated[Optional[str], typer.Option("--alias", help="Alias del modelo expuesto por la API (MODEL_ALIAS).", rich_help_panel="Parámetros del Modelo")]
NGpuLayersOpt = Annotated[Optional[int], typer.Option("--n-gpu-layers", help="Capas a descargar en GPU (N_GPU_LAYERS).", rich_help_panel="Parámetros del Modelo")]
CtxSizeOpt = Annotated[Optional[int], typer.Option("--ctx-size", "-c", help="Tamaño del contexto en tokens (CTX_SIZE).", rich_help_panel="Parámetros del Modelo")]
ThreadsOpt = Annotated[Optional[int], typer.Option("--threads", "-t", help="Hilos de CPU (THREADS).", rich_help_panel="Parámetros del Modelo")]
TemplateOpt = Annotated[Optional[Path], typer.Option("--chat-template-file", help="Plantilla Jinja de chat; activa --jinja (CHAT_TEMPLATE_FILE).", rich_help_panel="Parámetros del Modelo")]
HostOpt = Annotated[Optional[str], typer.Option("--host", "-H", help="Interfaz de red (HOST).", rich_help_panel="Parámetros del Servidor")]
PortOpt = Annotated[Optional[int], typer.Option("--port", "-p", help="Puerto HTTP (PORT).", rich_help_panel="Parámetros del Servidor")]
ApiKeyOpt = Annotated[Optional[str], typer.Option("--api-key", help="API key del servidor (API_KEY).", rich_help_panel="Parámetros del Servidor")]
ServerBinOpt = Annotated[Optional[Path], typer.Option("--server-bin", help="Ruta al binario `llama-server` (LLAMA_SERVER_BIN).", rich_help_panel="Parámetros del Servidor")]

# --- Opciones de cliente ---
UrlOpt = Annotated[Optional[str], typer.Option("--url", help="URL base del servidor (SERVER_URL).")]


def _apply(cfg: object, **overrides: object) -> None:
    """Sobrescribe en `cfg` las opciones que el usuario pasó explícitamente."""
    for name, value in overrides.items():
        if value is not None:
            setattr(cfg, name, value)


def _finish(result: InstallResult, summary: Callable[[], str]) -> None:
    if isinstance(result, Failed):
        typer.secho(f"❌  {result.reason}", fg=typer.colors.RED, err=True)
        if result.hint:
            typer.secho(f"💡  {result.hint}", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(1)
    if isinstance(result, Skipped):
        typer.secho(f"✅  Ya instalado (versión {result.version}); nada que hacer.", fg=typer.colors.GREEN)
        return
    typer.echo(summary())
    typer.secho(f"✅  Instalación completada (versión {result.version}).", fg=typer.colors.GREEN)


# ─────────────── Comandos: install ───────────────

install_app = typer.Typer(help="Sub-comandos para instalar CUDA, llama.cpp y modelos.", no_args_is_help=True)
cli.add_typer(install_app, name="install")


@install_app.command("cuda")
def install_cuda(profile: ProfileOpt = None, cuda_archs: CudaArchsOpt = None) -> None:
    """Instala el CUDA toolkit vía apt si falta `nvcc` y añade su bloque de entorno."""
    from .install.cuda import cuda_summary, install_cuda as _install_cuda

    cfg = SetupConfig()
    _apply(cfg, profile=profile, cuda_archs=cuda_archs)
    runner = CommandRunner()
    result = _install_cuda(cfg, runner=runner)
    _finish(result, lambda: cuda_summary(cfg, runner))


@install_app.command("llama")
def install_llama(
    root: RootOpt = None,
    cuda: CudaOpt = True,
    cuda_archs: CudaArchsOpt = None,
    jobs: JobsOpt = None,
    force: ForceOpt = False,
    profile: ProfileOpt = None,
) -> None:
    """Clona el último tag de llama.cpp y lo compila (Release) con o sin CUDA."""
    from .install.llama_build import build_llama_cpp, llama_summary

    cfg = SetupConfig()
    _apply(
        cfg,
        llama_cpp_root=root.expanduser() if root else None,
        cuda_archs=cuda_archs,
        jobs=jobs,
        profile=profile,
    )
    result = build_llama_cpp(cfg, cuda=cuda, force=force, runner=CommandRunner())
    _finish(result, lambda: llama_summary(cfg, cuda=cuda))


@install_app.command("model")
def install_model(
    url: Annotated[str, typer.Argument(help="URL directa del fichero .gguf.")],
    output_dir: Annotated[Path, typer.Option("--output-dir", "-o", help="Directorio destino.")] = Path("~/Downloads"),
    sha256: Annotated[Optional[str], typer.Option("--sha256", help="Checksum esperado (opcional).")] = None,
) -> None:
    """Descarga un modelo GGUF (reanudable, con verificación SHA-256 opcional)."""
    from .install.models_fetch import download_model

    try:
        dest = download_model(url, output_dir, sha256=sha256)
    except (requests.RequestException, RuntimeError, ValueError) as e:
        typer.secho(f"❌  Descarga fallida: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    typer.secho(f"✅  Modelo disponible en {dest}", fg=typer.colors.GREEN)


# ─────────────── Comandos: servidor ───────────────

@cli.command()
def serve(
    model: ModelOpt = None,
    alias: AliasOpt = None,
    n_gpu_layers: NGpuLayersOpt = None,
    ctx_size: CtxSizeOpt = None,
    threads: ThreadsOpt = None,
    chat_template_file: TemplateOpt = None,
    host: HostOpt = None,
    port: PortOpt = None,
    api_key: ApiKeyOpt = None,
    server_bin: ServerBinOpt = None,
) -> None:
    """Lanza `llama-server` con el modelo y los parámetros configurados."""
    from .server.launcher import launch

    cfg = ServerConfig()
    _apply(
        cfg,
        model=model,
        alias=alias,
        n_gpu_layers=n_gpu_layers,
        ctx_size=ctx_size,
        threads=threads,
        chat_template_file=str(chat_template_file) if chat_template_file else None,
        host=host,
        port=port,
        api_key=api_key,
        llama_server_bin=str(server_bin) if server_bin else None,
    )

    typer.echo(f"🚀  Levantando llama-server en http://{cfg.host}:{cfg.port}")
    typer.echo(f"   • Modelo: {cfg.model} (alias {cfg.alias})")
    typer.echo(f"   • Contexto: {cfg.ctx_size} tokens, GPU Layers: {cfg.n_gpu_layers}, Hilos: {cfg.threads}")
    if cfg.chat_template_file:
        typer.echo(f"   • Plantilla: {cfg.chat_template_file}")

    try:
        rc = launch(cfg)
    except FileNotFoundError as e:
        typer.secho(f"❌  {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        typer.echo("\n👋  Servidor detenido.")
        return
    if rc != 0:
        typer.secho(f"❌  `llama-server` devolvió código {rc}.", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    typer.echo("\n👋  Servidor detenido.")


@cli.command()
def probe(url: UrlOpt = None, alias: AliasOpt = None, api_key: ApiKeyOpt = None) -> None:
    """Envía una petición de prueba con la herramienta `get_weather`."""
    from .server.probe import build_tool_call_request, extract_tool_calls, send_probe

    cfg = AgentConfig()
    _apply(cfg, server_url=url, model=alias, api_key=api_key)
    payload = build_tool_call_request(cfg.model)
    try:
        response = send_probe(cfg.completions_url, payload, api_key=cfg.api_key, timeout=cfg.timeout)
    except requests.RequestException as e:
        typer.secho(f"❌  Error de conexión: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    typer.echo(json.dumps(response, indent=2, ensure_ascii=False))
    calls = extract_tool_calls(response)
    if calls:
        names = ", ".join(c.get("function", {}).get("name", "?") for c in calls)
        typer.secho(f"✅  El modelo llamó a: {names}", fg=typer.colors.GREEN)
    else:
        typer.secho("🙁  El modelo no devolvió llamadas a herramientas.", fg=typer.colors.YELLOW)


@cli.command()
def agent(
    task: Annotated[str, typer.Argument(help="Tarea para el agente.")] = "create a text file in the workspace with the contents 'hello world'",
    workspace: Annotated[Optional[Path], typer.Option("--workspace", "-w", help="Directorio sandbox (WORKSPACE_ROOT).")] = None,
    url: UrlOpt = None,
    alias: AliasOpt = None,
    max_turns: Annotated[Optional[int], typer.Option("--max-turns", min=1, help="Límite de turnos (AGENT_MAX_TURNS).")] = None,
) -> None:
    """Agente con herramientas de ficheros limitadas a un workspace."""
    from .agent import Agent

    cfg = AgentConfig()
    _apply(
        cfg,
        workspace_root=workspace.expanduser() if workspace else None,
        server_url=url,
        model=alias,
        max_turns=max_turns,
    )
    try:
        answer = Agent(cfg).run(task)
    except (requests.RequestException, RuntimeError) as e:
        typer.secho(f"❌  {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    typer.secho("=== Respuesta final del asistente ===", bold=True)
    typer.echo(answer)


def _main() -> None:
    cli()

if __name__ == "__main__":
    _main()
