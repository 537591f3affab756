"""
Model Endpoints

Pose model loading and introspection.
"""

import logging
from typing import Optional
from fastapi import APIRouter

from core.errors import PoseSenseError
from ..constants import EndpointPath
from ..controller_manager import get_pose_engine, get_model_resolver
from ..errors import to_http_exception
from ..types import LoadModelRequest, ModelInfo, ModelLoadResponse, TensorInfo

logger = logging.getLogger(__name__)

router = APIRouter()


# [ENDPOINT] POST /api/v1/model/load - Load the pose model
@router.post(
    EndpointPath.MODEL_LOAD.value,
    response_model=ModelLoadResponse,
    summary="Load Pose Model",
    description="""
    ## Load the ONNX pose model

    The model is loaded once per process; later calls return
    `"Model already loaded"` without reloading.

    Omit `model_path` to use the bundled `resources/pose_model.onnx`.

    ### Errors:
    - `404`: model file not found
    - `422`: the runtime rejected the file
    """,
)
def load_model(request: Optional[LoadModelRequest] = None) -> ModelLoadResponse:
    engine = get_pose_engine()
    try:
        if request is not None and request.model_path:
            path = request.model_path
        else:
            path = get_model_resolver().resolve()
        result = engine.load_model(path)
    except PoseSenseError as e:
        logger.error(f"Model load failed: {e}")
        raise to_http_exception(e)

    return ModelLoadResponse(
        message=result,
        model_path=str(engine.model_path) if engine.model_path else None,
        load_count=engine.inference.load_count,
    )


# [ENDPOINT] GET /api/v1/model/info - Loaded model details
@router.get(
    EndpointPath.MODEL_INFO.value,
    response_model=ModelInfo,
    summary="Model Info",
)
def model_info() -> ModelInfo:
    engine = get_pose_engine()
    if not engine.is_model_loaded():
        return ModelInfo(model_loaded=False)

    inference = engine.inference
    try:
        inputs = inference.declared_inputs()
        outputs = inference.declared_outputs()
        providers = inference.get_model_info().get("providers", [])
    except PoseSenseError as e:
        # Unloaded between the check and the query
        raise to_http_exception(e)

    return ModelInfo(
        model_loaded=True,
        model_path=str(engine.model_path),
        providers=list(providers),
        inputs=[TensorInfo(name=t.name, shape=list(t.shape), dtype=t.dtype) for t in inputs],
        outputs=[TensorInfo(name=t.name, shape=list(t.shape), dtype=t.dtype) for t in outputs],
    )
