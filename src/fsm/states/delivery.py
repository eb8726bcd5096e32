"""
Estados de uma entrega de webhook no caminho de intake.

Cada requisição percorre os guards em ordem. Qualquer falha leva a
REJECTED; duplicatas vão direto para ACKNOWLEDGED sem enfileirar.
"""

from enum import StrEnum


class DeliveryState(StrEnum):
    """
    Estados de uma entrega (envelope) no intake.

    Estados não-terminais:
        - RECEIVED: Requisição recebida, nenhum guard executado
        - SIZE_CHECKED: Tamanho do corpo dentro do limite
        - SIGNATURE_CHECKED: HMAC confere
        - TIMESTAMP_CHECKED: Timestamp dentro da janela de tolerância
        - DEDUP_CHECKED: Id reivindicado no store de idempotência
        - ENQUEUED: Job gravado na fila

    Estados terminais:
        - ACKNOWLEDGED: Resposta 200 (novo ou duplicado)
        - REJECTED: Resposta de erro, nada enfileirado
    """

    RECEIVED = "received"
    SIZE_CHECKED = "size_checked"
    SIGNATURE_CHECKED = "signature_checked"
    TIMESTAMP_CHECKED = "timestamp_checked"
    DEDUP_CHECKED = "dedup_checked"
    ENQUEUED = "enqueued"

    ACKNOWLEDGED = "acknowledged"
    REJECTED = "rejected"

    def __str__(self) -> str:
        return self.value


DELIVERY_TERMINAL_STATES: frozenset[DeliveryState] = frozenset({
    DeliveryState.ACKNOWLEDGED,
    DeliveryState.REJECTED,
})

DELIVERY_INITIAL_STATE: DeliveryState = DeliveryState.RECEIVED
