"""Central registry for Redis Lua scripts used by the insurer.

Scripts are registered at application startup for EVALSHA. Each returns a
two-element array ``{code, payload}``:

    - 0: Stale - the policy already exists (purchase) or its stored status
         is no longer the expected one. The payload holds the current policy
         JSON.

    - 1: Success - the new policy JSON was stored and is returned.

    - 2: Policy not found - nothing is stored under the key. Empty payload.

    - 3: Insufficient bond (claim only) - the provider bond cannot cover the
         insured payment. The payload holds the current bond balance.

Insurance fees sit in a per-provider premium counter while a policy is open.
Confirmation moves the fee into the provider's bond; a claim hands it back to
the client together with the payment slashed from the bond.

Amounts are passed to INCRBY/DECRBY as the original ARGV strings, so Redis
does the arithmetic on 64-bit integers instead of Lua numbers.
"""

INSURANCE_SCRIPTS = {
    "purchase_policy": """
        local policy_key = KEYS[1]
        local premium_key = KEYS[2]
        local new_val = ARGV[1]

        local current_raw = redis.call('GET', policy_key)
        if current_raw then
            return {0, current_raw}
        end

        redis.call('SET', policy_key, new_val)
        redis.call('INCRBY', premium_key, ARGV[2])
        return {1, new_val}
    """,
    "confirm_policy": """
        local policy_key = KEYS[1]
        local bond_key = KEYS[2]
        local premium_key = KEYS[3]
        local expected_status = tonumber(ARGV[1])
        local new_val = ARGV[2]

        local current_raw = redis.call('GET', policy_key)
        if not current_raw then
            return {2, ''}
        end

        local current = cjson.decode(current_raw)
        if tonumber(current.status) ~= expected_status then
            return {0, current_raw}
        end

        redis.call('DECRBY', premium_key, ARGV[3])
        redis.call('INCRBY', bond_key, ARGV[3])
        redis.call('SET', policy_key, new_val)
        return {1, new_val}
    """,
    "claim_policy": """
        local policy_key = KEYS[1]
        local bond_key = KEYS[2]
        local premium_key = KEYS[3]
        local expected_status = tonumber(ARGV[1])
        local new_val = ARGV[2]

        local current_raw = redis.call('GET', policy_key)
        if not current_raw then
            return {2, ''}
        end

        local current = cjson.decode(current_raw)
        if tonumber(current.status) ~= expected_status then
            return {0, current_raw}
        end

        local bond = redis.call('GET', bond_key) or '0'
        if tonumber(bond) < tonumber(ARGV[3]) then
            return {3, bond}
        end

        redis.call('DECRBY', bond_key, ARGV[3])
        redis.call('DECRBY', premium_key, ARGV[4])
        redis.call('SET', policy_key, new_val)
        return {1, new_val}
    """,
}
