"""Cross-cutting helpers shared by the matching engine."""
