"""格式化工具"""

from anyrouter_checkin.models.results import CheckinOutcome


def format_outcome(outcome: CheckinOutcome) -> str:
    """
    格式化单个账号的签到结果

    Args:
        outcome: 签到处理结果

    Returns:
        单行结果字符串
    """
    if outcome.skipped:
        return f"⏭️ `{outcome.username}`: {outcome.message}"

    if not outcome.session_ok:
        return f"❌ `{outcome.username}`: 登录失败 {outcome.message}".rstrip()

    status_emoji = "✅" if outcome.success else "⚠️"
    parts = [f"{status_emoji} `{outcome.username}`:"]
    parts.append("签到成功" if outcome.checkin_ok else f"签到失败 {outcome.message}".rstrip())

    change = outcome.balance_change
    if change is not None:
        sign = "+" if change.amount >= 0 else ""
        parts.append(f"{sign}{change.amount} (余额: {change.new_balance})")

    if outcome.errors:
        parts.append("; ".join(outcome.errors))

    return " ".join(parts)


def format_checkin_summary(outcomes: list[CheckinOutcome], reference_date: str) -> str:
    """
    格式化一次签到运行的汇总

    Args:
        outcomes: 签到处理结果列表
        reference_date: 参考时区日期

    Returns:
        汇总消息字符串
    """
    processed = [o for o in outcomes if not o.skipped]
    sessions = sum(1 for o in processed if o.session_ok)
    checkins = sum(1 for o in processed if o.checkin_ok)

    lines = [
        f"📊 签到结果 {reference_date}",
        "",
        f"📝 处理账号: {len(processed)}",
        f"🔑 登录成功: {sessions}",
        f"✅ 签到成功: {checkins}",
        "",
    ]
    lines.extend(format_outcome(o) for o in outcomes)

    return "\n".join(lines)
