"""
`python -m lmsetup <comando>`

Comandos:
  install cuda   – CUDA toolkit vía apt + bloque de entorno
  install llama  – clona el último tag de llama.cpp y compila
  install model  – descarga un .gguf
  serve          – lanza llama-server
  probe          – petición tool-calling de prueba
  agent          – agente con herramientas de ficheros
"""
from .cli import _main

if __name__ == "__main__":
    _main()
