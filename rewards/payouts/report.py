"""
Console report for a payout run.
"""
import json

from rewards.payouts.job import CommitResult, PayoutPlan


def results_json(plan: PayoutPlan) -> list[dict]:
    return [
        {
            "slackId": p.slack_id,
            "email": p.email,
            "hours": round(p.hours, 2),
            "tokens": p.total_tokens,
            "baseTokens": p.base_tokens,
            "bonusTokens": p.bonus_tokens,
            "platforms": p.platforms,
        }
        for p in plan.payouts
        if p.total_tokens > 0
    ]


def render_report(plan: PayoutPlan, result: CommitResult) -> str:
    lines: list[str] = []
    results = results_json(plan)

    lines.append("=== FINAL RESULTS (JSON) ===")
    lines.append(json.dumps(results, indent=2, ensure_ascii=False))

    lines.append("")
    lines.append("=== SUMMARY ===")
    lines.append(f"Policy: {plan.policy.rounding.value}")
    lines.append(f"Total users: {len(results)}")
    lines.append(f"Total tokens distributed: {sum(r['tokens'] for r in results)}")
    with_bonus = [p for p in plan.payouts if p.bonus_tokens > 0]
    lines.append(f"Users with platform bonuses: {len(with_bonus)}")
    if result.dry_run:
        lines.append(f"Dry run: {result.inserted} payouts would be written, ledger untouched")
    else:
        lines.append(f"Cleared {result.deleted} old payouts, inserted {result.inserted}")

    if with_bonus:
        lines.append("")
        lines.append("=== PLATFORM BONUSES ===")
        for p in with_bonus:
            lines.append(f"{p.slack_id} ({p.email}): +{p.bonus_tokens} for {', '.join(p.platforms)}")

    if plan.review:
        lines.append("")
        lines.append("=== YELLOW TRUST (REVIEW) ===")
        for p in plan.review:
            lines.append(f"{p.slack_id} ({p.email}): {p.hours:.2f} hours, {p.total_tokens} tokens")

    if plan.skipped:
        lines.append("")
        lines.append("=== SKIPPED USERS ===")
        for s in plan.skipped:
            lines.append(f"{s.slack_id} ({s.email}): {s.reason}")

    lines.append("")
    if result.warnings:
        lines.append("=== BALANCE REDUCTION WARNINGS ===")
        lines.append("The following users have REDUCED available balances after recalculation:")
        lines.append("")
        for w in result.warnings:
            lines.append(f"{w.slack_id} ({w.email}):")
            lines.append(f"   Old available balance: {w.old_balance} tokens")
            lines.append(f"   New available balance: {w.new_balance} tokens")
            lines.append(f"   Reduction: {w.difference} tokens")
        lines.append(f"Total users with reduced balances: {len(result.warnings)}")
    else:
        lines.append("No users have reduced balances after recalculation")

    return "\n".join(lines)
