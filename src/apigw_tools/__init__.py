# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""apigw-tools -- flush AWS API Gateway stage caches and pull API keys into dotenv files."""

from apigw_tools.port import ApiGatewayPort, ApiKeySummary, RestApiSummary
from apigw_tools.tools import AwsApiGatewayTools, FlushStageCacheByNameResult
from apigw_tools.xray import XrayMode, XrayState

__all__ = [
    "__version__",
    "ApiGatewayPort",
    "ApiKeySummary",
    "AwsApiGatewayTools",
    "FlushStageCacheByNameResult",
    "RestApiSummary",
    "XrayMode",
    "XrayState",
]
__version__ = "0.1.0"
