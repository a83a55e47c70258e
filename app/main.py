"""Ponto de entrada da API FastAPI.

Responsabilidades:
- Configurar a aplicação FastAPI
- Registrar rotas e eventos
- Carregar o conjunto de políticas no startup
"""

import uvicorn
from fastapi import FastAPI, HTTPException

from motor_avaliacao.api.controller import ControladorAvaliacao
from motor_avaliacao.config.settings import Configuracoes
from motor_avaliacao.infrastructure.policy.policy_repository import RepositorioPoliticas
from motor_avaliacao.util.logger import logger

app = FastAPI(
    title="Motor de Avaliação",
    description="API de cálculo de notas e decisão de transição de classe",
    version="1.0.0",
)


@app.on_event("startup")
async def evento_inicializacao():
    """Carrega as políticas de transição na memória."""
    logger.info("Inicializando recursos da API...")
    RepositorioPoliticas().carregar()


controlador_avaliacao = ControladorAvaliacao()
app.include_router(controlador_avaliacao.roteador, prefix="/api/v1", tags=["Avaliação"])


@app.get("/health", tags=["Infraestrutura"])
def checar_saude():
    """Endpoint de health check.

    Retorno:
    - dict: status da aplicação e versão das políticas ativas
    """
    try:
        conjunto = RepositorioPoliticas().obter_conjunto()
        return {"status": "ok", "versao_politicas": conjunto.versao}
    except (FileNotFoundError, ValueError) as erro:
        raise HTTPException(status_code=503, detail=str(erro))


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=Configuracoes.PORT)
