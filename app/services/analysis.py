import asyncio
import logging
from datetime import datetime, timedelta
from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.message import Message
from app.models.analysis import ConversationAnalysis
from app.core.config import settings
from app.core.origin import normalize_host
from app.core.exceptions import DatabaseException, ExternalServiceException, ExternalServiceServerError
from app.external.n8n import N8nService
from app.schemas.analysis import AnalyzeRequest, AnalysisResult, SingleAnalysisResponse, BatchAnalysisResponse

logger = logging.getLogger(__name__)

DEFAULT_BATCH_LIMIT = 50
MAX_BATCH_LIMIT = 500
LOOKBACK_DAYS = 7
RESULTS_PREVIEW = 5


def clamp_limit(limit: Optional[int]) -> int:
    if not limit:
        return DEFAULT_BATCH_LIMIT
    return max(1, min(int(limit), MAX_BATCH_LIMIT))


class AnalysisService:
    def __init__(self):
        pass

    async def analyze(self, db: AsyncSession, request: AnalyzeRequest, n8n: N8nService):
        host = normalize_host(request.store_url)
        if request.session_id:
            return await self.analyze_session(request.session_id, host, n8n)
        return await self.analyze_batch(db, host, clamp_limit(request.limit), n8n)

    async def analyze_session(self, session_id: str, store_url: str, n8n: N8nService) -> SingleAnalysisResponse:
        logger.info(f"Analyzing single session {session_id} for {store_url}")
        try:
            analysis = await n8n.analyze_session(session_id, store_url)
        except ExternalServiceException as ex:
            logger.error(f"Analysis failed for {session_id}: {ex.detail}")
            raise ExternalServiceServerError(f"Failed to analyze session: {ex.detail}")
        return SingleAnalysisResponse(session_id=session_id, analysis=analysis)

    async def find_unanalyzed_sessions(self, db: AsyncSession, store_url: str, limit: int) -> List[str]:
        since = datetime.utcnow() - timedelta(days=LOOKBACK_DAYS)
        last_message = func.max(Message.created_at)
        stmt = (
            select(Message.session_id)
            .outerjoin(ConversationAnalysis, ConversationAnalysis.session_id == Message.session_id)
            .where(
                Message.store_url == store_url,
                Message.created_at >= since,
                ConversationAnalysis.id.is_(None),
            )
            .group_by(Message.session_id)
            .order_by(last_message.desc())
            .limit(limit)
        )
        try:
            result = await db.execute(stmt)
        except Exception as ex:
            logger.exception(f"Error finding unanalyzed sessions for {store_url}: {ex}")
            raise DatabaseException(500, "Failed to load sessions for analysis")
        return list(result.scalars().all())

    async def analyze_batch(self, db: AsyncSession, store_url: str, limit: int, n8n: N8nService) -> BatchAnalysisResponse:
        session_ids = await self.find_unanalyzed_sessions(db, store_url, limit)
        if not session_ids:
            return BatchAnalysisResponse(
                analyzed_count=0,
                total_sessions=0,
                message="No new sessions to analyze",
            )

        logger.info(f"Batch analysis of {len(session_ids)} sessions for {store_url}")
        results: List[AnalysisResult] = []
        for index, session_id in enumerate(session_ids):
            try:
                data = await n8n.analyze_session(session_id, store_url)
                results.append(AnalysisResult(session_id=session_id, success=True, data=data))
            except ExternalServiceException as ex:
                logger.error(f"Analysis failed for {session_id}: {ex.detail}")
                results.append(AnalysisResult(session_id=session_id, success=False, error=ex.detail))

            # the n8n workflow is rate limited by the LLM provider
            if index < len(session_ids) - 1 and settings.analysis_batch_delay > 0:
                await asyncio.sleep(settings.analysis_batch_delay)

        analyzed = sum(1 for r in results if r.success)
        failed = len(results) - analyzed
        return BatchAnalysisResponse(
            analyzed_count=analyzed,
            failed_count=failed,
            total_sessions=len(session_ids),
            results=results[:RESULTS_PREVIEW],
            message=f"Analyzed {analyzed} sessions, {failed} failed",
        )
