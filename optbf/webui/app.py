from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Response, status
from pydantic import BaseModel, Field, field_validator

from optbf.compiler import Compiler
from optbf.emit import UnsupportedTarget, emit
from optbf.interpreter import StepLimitExceeded, TapeUnderflow
from optbf.ir import count_operations
from optbf.optimizer import OptLevel
from optbf.parser import ParseError

from .store import ProgramRecord, ProgramStore

logger = logging.getLogger(__name__)

DEFAULT_RUN_STEPS = 1_000_000


def _string_to_input_bytes(data: str) -> bytes:
    return data.encode("utf-8")


def _bytes_to_string(data: bytes) -> str:
    return data.decode("latin-1")


class CompileRequest(BaseModel):
    code: str
    opt_level: int = Field(default=OptLevel.AGGRESSIVE.value, ge=0, le=3)


class ProgramPayload(BaseModel):
    program_id: str
    opt_level: int
    operation_count: int
    ir: str


class RunRequest(BaseModel):
    input: str = ""
    max_steps: int = Field(default=DEFAULT_RUN_STEPS, ge=1)


class RunResponse(BaseModel):
    program_id: str
    output: str
    pointer: int
    steps: int


class EmitResponse(BaseModel):
    program_id: str
    target: str
    code: str

    @field_validator("target")
    @classmethod
    def normalize_target(cls, value: str) -> str:
        return value.lower()


def create_app(store: Optional[ProgramStore] = None) -> FastAPI:
    program_store = store or ProgramStore()
    app = FastAPI(title="optbf API", version="0.1.0")

    def _get_record(program_id: str) -> ProgramRecord:
        try:
            return program_store.get(program_id)
        except KeyError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    def _build_payload(record: ProgramRecord) -> ProgramPayload:
        return ProgramPayload(
            program_id=record.program_id,
            opt_level=int(record.opt_level),
            operation_count=count_operations(record.program),
            ir=emit(record.program, "ir"),
        )

    @app.post("/api/program", response_model=ProgramPayload, status_code=status.HTTP_201_CREATED)
    def create_program(payload: CompileRequest) -> ProgramPayload:
        opt_level = OptLevel(payload.opt_level)
        try:
            program = Compiler(opt_level=opt_level).compile(payload.code)
        except ParseError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        record = program_store.add(source=payload.code, opt_level=opt_level, program=program)
        logger.info("compiled program %s at level %s", record.program_id, opt_level.name)
        return _build_payload(record)

    @app.get("/api/program/{program_id}", response_model=ProgramPayload)
    def get_program(program_id: str) -> ProgramPayload:
        return _build_payload(_get_record(program_id))

    @app.post("/api/program/{program_id}/run", response_model=RunResponse)
    def run_program(program_id: str, payload: RunRequest) -> RunResponse:
        record = _get_record(program_id)
        compiler = Compiler(opt_level=record.opt_level)
        try:
            output, interpreter = compiler.execute(
                record.program,
                _string_to_input_bytes(payload.input),
                max_steps=payload.max_steps,
            )
        except (TapeUnderflow, StepLimitExceeded) as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        logger.debug("program %s ran for %d steps", program_id, interpreter.steps)
        return RunResponse(
            program_id=program_id,
            output=_bytes_to_string(output),
            pointer=interpreter.pointer,
            steps=interpreter.steps,
        )

    @app.get("/api/program/{program_id}/emit/{target}", response_model=EmitResponse)
    def emit_program(program_id: str, target: str) -> EmitResponse:
        record = _get_record(program_id)
        try:
            code = emit(record.program, target)
        except UnsupportedTarget as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return EmitResponse(program_id=program_id, target=target, code=code)

    @app.delete("/api/program/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_program(program_id: str) -> Response:
        removed = program_store.remove(program_id)
        if not removed:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown program id: {program_id}",
            )
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


__all__ = ["create_app"]
