"""Internal similarity stage: detects duplicates among submitted applications."""

from typing import Optional, Sequence

from review.models import Application, ApplicationStatus, ReviewStage, StageOutcome
from review.similarity import edit_similarity, token_jaccard
from review.stages.base import StageEvaluator, percent

CONTENT_WEIGHT = 0.6
TITLE_WEIGHT = 0.4
MIN_WORD_LEN = 3
MATCH_THRESHOLD = 0.3
REJECT_THRESHOLD = 0.8


class InternalSimilarityEvaluator(StageEvaluator):
    """Compares an application against other active, non-draft applications."""

    stage = ReviewStage.INTERNAL_IDEA
    advances_to = ApplicationStatus.CATEGORIZATION
    needs_peers = True

    @staticmethod
    def _content(application: Application) -> str:
        return (
            f"{application.title} {application.description} "
            f"{application.problem_statement} {application.solution}"
        ).lower()

    def pair_similarity(self, first: Application, second: Application) -> float:
        content = token_jaccard(
            self._content(first),
            self._content(second),
            min_word_len=MIN_WORD_LEN,
            stop_words=self.tables.internal_similarity.stop_words,
        )
        title = edit_similarity(first.title.lower(), second.title.lower())
        return content * CONTENT_WEIGHT + title * TITLE_WEIGHT

    def find_similar(
        self,
        application: Application,
        peers: Sequence[Application],
    ) -> list[dict]:
        """Peers above the match threshold, most similar first."""
        matches = []
        for peer in peers:
            similarity = self.pair_similarity(application, peer)
            if similarity > MATCH_THRESHOLD:
                matches.append({
                    "id": peer.id,
                    "title": peer.title,
                    "owner": peer.owner_name,
                    "created_at": peer.created_at.isoformat(),
                    "similarity": similarity,
                })
        matches.sort(key=lambda match: match["similarity"], reverse=True)
        return matches

    def evaluate(
        self,
        application: Application,
        comparisons: Optional[Sequence[Application]] = None,
    ) -> StageOutcome:
        peers = [
            peer for peer in (comparisons or [])
            if peer.id != application.id
            and peer.is_active
            and peer.status != ApplicationStatus.DRAFT
        ]
        similar = self.find_similar(application, peers)
        metadata = {
            "similar_ideas": similar,
            "total_applications_checked": len(peers),
        }

        if not similar:
            return self.approve(
                1.0,
                "No similar ideas found in internal applications. Proceeding to categorization.",
                metadata,
            )

        best = similar[0]
        if best["similarity"] > REJECT_THRESHOLD:
            feedback = (
                "Similar idea found in internal applications. "
                f'Most similar application: "{best["title"]}" by {best["owner"] or "another applicant"} '
                f'({percent(best["similarity"])}% similarity). '
                "This application is rejected in favor of the earlier submission."
            )
            return self.reject(best["similarity"], feedback, metadata)

        feedback = (
            "Some similar ideas found but with low similarity "
            f'(max: {percent(best["similarity"])}%). Proceeding to categorization.'
        )
        return self.approve(1.0 - best["similarity"], feedback, metadata)
