"""Redis Lua scripts for the rate limiting algorithms.

Every script performs one complete read-compute-write state transition.
Redis runs a script without interleaving any other command, which is what
keeps concurrent attempts on the same key from both observing spare
capacity and both being admitted.

Time is always passed in by the caller (ARGV) so a script never reads the
server clock. Fractional state is written with %.17g so a float survives
the round trip through a Redis string unchanged. Expiries are capped at
2147483647 seconds, so even a vanishingly small rate yields a TTL that
EXPIRE accepts.
"""

# INCR a counter and attach an expiry if the key has none.
# KEYS[1] counter key; ARGV[1] ttl seconds. Returns the new count.
INCREMENT_WITH_EXPIRY_SCRIPT = """
    local count = redis.call('INCR', KEYS[1])
    if redis.call('PTTL', KEYS[1]) < 0 then
        redis.call('EXPIRE', KEYS[1], tonumber(ARGV[1]))
    end
    return count
"""

# Sliding window log: evict, count and conditionally insert in one step.
# KEYS[1] sorted set; ARGV: max_requests, window_ms, now_ms, unique member.
# Returns {allowed, count_before, oldest_score_or_empty}.
SLIDING_WINDOW_LOG_SCRIPT = """
    local key = KEYS[1]
    local max_requests = tonumber(ARGV[1])
    local window_ms = tonumber(ARGV[2])
    local now_ms = tonumber(ARGV[3])
    local member = ARGV[4]

    redis.call('ZREMRANGEBYSCORE', key, '-inf', now_ms - window_ms)
    local count = redis.call('ZCARD', key)

    if count < max_requests then
        redis.call('ZADD', key, now_ms, member)
        redis.call('PEXPIRE', key, window_ms)
        return {1, count, ''}
    end

    local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
    local oldest_score = ''
    if #oldest > 0 then
        oldest_score = oldest[2]
    end
    return {0, count, oldest_score}
"""

# Sliding window counter: weigh the previous window, then increment the
# current one only if the estimate is below the limit.
# KEYS[1] current window counter, KEYS[2] previous window counter;
# ARGV: max_requests, elapsed fraction, current counter ttl seconds.
# Returns {allowed, current_count, previous_count}.
SLIDING_WINDOW_COUNTER_SCRIPT = """
    local current_key = KEYS[1]
    local previous_key = KEYS[2]
    local max_requests = tonumber(ARGV[1])
    local elapsed = tonumber(ARGV[2])
    local ttl = tonumber(ARGV[3])

    local previous = tonumber(redis.call('GET', previous_key)) or 0
    local current = tonumber(redis.call('GET', current_key)) or 0

    if previous * (1 - elapsed) + current >= max_requests then
        return {0, current, previous}
    end

    current = redis.call('INCR', current_key)
    if redis.call('PTTL', current_key) < 0 then
        redis.call('EXPIRE', current_key, ttl)
    end
    return {1, current, previous}
"""

# Token bucket: refill by elapsed time, then try to take one token.
# KEYS[1] hash {tokens, last_refill}; ARGV: max_tokens, refill_rate, now.
# Returns {allowed, floor(tokens_left)}.
TOKEN_BUCKET_SCRIPT = """
    local key = KEYS[1]
    local max_tokens = tonumber(ARGV[1])
    local refill_rate = tonumber(ARGV[2])
    local now = tonumber(ARGV[3])

    local tokens = max_tokens
    local last_refill = now

    local data = redis.call('HMGET', key, 'tokens', 'last_refill')
    if data[1] then
        tokens = tonumber(data[1]) or max_tokens
    end
    if data[2] then
        last_refill = tonumber(data[2]) or now
    end

    local elapsed = math.max(0, now - last_refill)
    tokens = math.min(max_tokens, tokens + elapsed * refill_rate)

    local allowed = 0
    if tokens >= 1 then
        tokens = tokens - 1
        allowed = 1
    end

    redis.call('HSET', key,
        'tokens', string.format('%.17g', tokens),
        'last_refill', string.format('%.17g', now))
    redis.call('EXPIRE', key, math.min(math.ceil(max_tokens / refill_rate) + 1, 2147483647))

    return {allowed, math.floor(tokens)}
"""

# Leaky bucket, policing mode: drain by elapsed time, reject when full.
# KEYS[1] hash {level, last_leak}; ARGV: capacity, leak_rate, now.
# Returns {allowed, remaining}.
LEAKY_BUCKET_POLICING_SCRIPT = """
    local key = KEYS[1]
    local capacity = tonumber(ARGV[1])
    local leak_rate = tonumber(ARGV[2])
    local now = tonumber(ARGV[3])

    local level = 0
    local last_leak = now

    local data = redis.call('HMGET', key, 'level', 'last_leak')
    if data[1] then
        level = tonumber(data[1]) or 0
    end
    if data[2] then
        last_leak = tonumber(data[2]) or now
    end

    local elapsed = math.max(0, now - last_leak)
    level = math.max(0, level - elapsed * leak_rate)

    local allowed = 0
    if level + 1 <= capacity then
        level = level + 1
        allowed = 1
    end

    redis.call('HSET', key,
        'level', string.format('%.17g', level),
        'last_leak', string.format('%.17g', now))
    redis.call('EXPIRE', key, math.min(math.ceil(capacity / leak_rate) + 1, 2147483647))

    return {allowed, math.max(0, math.floor(capacity - level))}
"""

# Leaky bucket, shaping mode: schedule the request at the next free slot
# and reject only when the projected queue would exceed capacity.
# KEYS[1] hash {next_free}; ARGV: capacity, leak_rate, now.
# Returns {allowed, remaining, delay_seconds}; the delay is a %.17g string.
LEAKY_BUCKET_SHAPING_SCRIPT = """
    local key = KEYS[1]
    local capacity = tonumber(ARGV[1])
    local leak_rate = tonumber(ARGV[2])
    local now = tonumber(ARGV[3])

    local next_free = tonumber(redis.call('HGET', key, 'next_free')) or now
    if next_free < now then
        next_free = now
    end

    local wait = next_free - now
    local depth = wait * leak_rate

    local allowed = 0
    local delay = 0
    if depth + 1 <= capacity then
        allowed = 1
        delay = wait
        next_free = next_free + 1 / leak_rate
        depth = depth + 1
    end

    redis.call('HSET', key, 'next_free', string.format('%.17g', next_free))
    redis.call('EXPIRE', key, math.min(math.ceil(capacity / leak_rate) + 1, 2147483647))

    return {allowed, math.max(0, math.floor(capacity - depth)), string.format('%.17g', delay)}
"""
