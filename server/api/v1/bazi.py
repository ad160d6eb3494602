#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
八字计算API接口
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Request
from pydantic import BaseModel, Field

from core.calculators.bazi_core_calculator import BaziCoreCalculator, MODE_ORACLE
from core.models.birth import BirthInput
from server.services.bazi_schema_normalizer import BaziSchemaNormalizer
from server.services.bazi_service import BaziService
from server.utils.async_executor import run_in_executor

logger = logging.getLogger(__name__)

router = APIRouter()


class BirthLocation(BaseModel):
    """出生地点"""
    lng: Optional[float] = Field(None, description="经度")
    lat: Optional[float] = Field(None, description="纬度")
    province: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    label: Optional[str] = Field(None, description="地点显示文本")


class BirthContractRequest(BaseModel):
    """出生信息输入契约"""
    birthDate: Optional[str] = Field(None, description="公历出生日期", examples=["1991-04-30"])
    birthTime: Optional[str] = Field(None, description="出生时间 HH:mm，缺失时按 12:30 计算", examples=["12:30"])
    birthLocation: Optional[BirthLocation] = None
    nickname: Optional[str] = None

    def to_contract(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class StandardBaziRequest(BirthContractRequest):
    """标准八字记录请求"""
    identityKey: Optional[str] = Field(None, description="身份键，默认昵称或出生参数指纹")
    mode: Optional[str] = Field(None, description="计算方式 oracle / manual")


class PillarsRequest(BaseModel):
    """四柱计算请求"""
    birthDate: Optional[str] = Field(None, description="公历出生日期", examples=["1991-04-30"])
    birthTime: Optional[str] = Field(None, description="出生时间 HH:mm")
    longitude: Optional[float] = Field(None, description="经度")
    mode: str = Field(MODE_ORACLE, description="计算方式 oracle / manual")


class LiunianRequest(BirthContractRequest):
    """流年分析请求"""
    targetYear: int = Field(..., description="流年年份", examples=[2025])
    identityKey: Optional[str] = None


class BaziResponse(BaseModel):
    """八字计算响应模型"""
    success: bool
    data: Optional[dict] = None
    message: Optional[str] = None


def get_bazi_service(request: Request) -> BaziService:
    return request.app.state.bazi_service


@router.post("/bazi/standard", response_model=BaziResponse, summary="标准八字记录")
async def standard_record(request: StandardBaziRequest, http_request: Request):
    """
    计算（或读取缓存的）标准八字记录

    - **birthDate**: 阳历日期 (YYYY-MM-DD)
    - **birthTime**: 出生时间 (HH:mm)，可选
    - **birthLocation**: {lng, lat, province, city, district}，可选
    - **identityKey**: 缓存身份键，可选
    """
    birth = BirthInput.from_contract(request.to_contract())
    service = get_bazi_service(http_request)
    record = await service.get_standard_record(request.identityKey, birth, mode=request.mode)
    return BaziResponse(success=True, data=record)


@router.post("/bazi/pillars", response_model=BaziResponse, summary="计算四柱")
async def pillars(request: PillarsRequest):
    """只计算四柱（不写缓存）"""
    four_pillars = await run_in_executor(
        BaziCoreCalculator.compute_pillars,
        request.birthDate,
        request.birthTime,
        request.longitude,
        mode=request.mode,
    )
    data = four_pillars.to_dict()
    data["isApproximate"] = four_pillars.is_approximate
    return BaziResponse(success=True, data=data)


@router.post("/bazi/liunian", response_model=BaziResponse, summary="流年运势")
async def liunian(request: LiunianRequest, http_request: Request):
    """按出生信息计算标准记录后分析指定流年"""
    birth = BirthInput.from_contract(request.to_contract())
    service = get_bazi_service(http_request)
    record = await service.get_standard_record(request.identityKey, birth)
    result = await service.get_liunian(record, request.targetYear)
    return BaziResponse(success=True, data=result)


@router.post("/bazi/normalize", summary="八字记录归一化")
async def normalize_record(record: Dict[str, Any] = Body(...)):
    """任意版本的记录 -> 标准结构，并返回验证结果"""
    standard = BaziSchemaNormalizer.normalize(record)
    return {
        "success": True,
        "data": standard,
        "validation": BaziSchemaNormalizer.validate(standard),
    }
