"""Turn-based combat engine.

One CombatManager owns every active combat session, keyed by combat id.
Player and enemy turns resolve one action at a time:

  resolve action → log → spend the turn's action → advance turn → check end

Hit chance  = clamp(5, 95, 80 + (dex - 10) * 2 - target dex * 1.5, -15 if defending)
Damage      = max(1, (10 + str * 1.5 + level * 2) * ±15% - target con * 0.8)
Crit chance = clamp(1, 50, 5 + (dex - 10) * 0.5 + (luck - 10) * 0.3), doubles damage
Defending targets take half damage, applied after the crit.

Buff and debuff effects with an affected stat shift that attribute while
they last. Sessions are in-memory only; callers serialise access per id.
"""

from __future__ import annotations

import logging
import math
import random
from datetime import datetime, timezone
from uuid import uuid4

from rpg_supreme.content.enemies import get_enemy_template
from rpg_supreme.errors import CombatError, CombatNotFoundError
from rpg_supreme.loot import generate_loot
from rpg_supreme.models import (
    Attributes,
    AttributeName,
    CombatAction,
    CombatActionResult,
    CombatActionType,
    Combatant,
    CombatantView,
    CombatLogEntry,
    CombatOptions,
    CombatResult,
    CombatSession,
    CombatUIState,
    DefeatedEnemy,
    EffectView,
    IntentionView,
    LogLine,
    LootedItem,
    PlayerCharacter,
    StatusEffect,
    TurnSlot,
)

from . import enemy_ai, initiative

logger = logging.getLogger(__name__)

# A zero multiplier marks a non-damaging skill, see _resolve_buff_skill().
SKILL_DAMAGE_MULTIPLIERS: dict[str, float] = {
    "skill_bite": 1.3,
    "skill_howl": 0,
    "skill_dirty_trick": 0,
    "skill_backstab": 2.0,
    "skill_throw_rock": 0.6,
    "skill_bone_strike": 1.5,
}

SKILL_NAMES: dict[str, str] = {
    "skill_bite": "Mordisco",
    "skill_howl": "Aullido",
    "skill_dirty_trick": "Truco Sucio",
    "skill_backstab": "Puñalada Trasera",
    "skill_throw_rock": "Lanzar Piedra",
    "skill_bone_strike": "Golpe de Hueso",
}

SKILL_MANA_COST = 10
HEALTH_POTION_HEALING = 20
PLAYER_FLEE_CHANCE = 0.4
ENEMY_FLEE_CHANCE = 0.3
STAMINA_REGEN_PER_ROUND = 5
UI_LOG_LINES = 10

_GENERIC_ENEMY_ATTRIBUTES = Attributes(
    strength=10, dexterity=10, constitution=10,
    intelligence=5, wisdom=5, charisma=5, luck=10,
)


def _clamp(low: float, high: float, value: float) -> float:
    return max(low, min(high, value))


def _percent(current: int, maximum: int) -> int:
    return round(current / maximum * 100) if maximum > 0 else 0


def effective_attribute(combatant: Combatant, stat: AttributeName) -> int:
    """Base attribute plus active buffs minus active debuffs on that stat."""
    value = getattr(combatant.attributes, stat)
    for effect in combatant.status_effects:
        if effect.affected_stat != stat:
            continue
        if effect.type == "buff":
            value += effect.magnitude
        elif effect.type == "debuff":
            value -= effect.magnitude
    return value


def calculate_hit_chance(attacker: Combatant, target: Combatant) -> float:
    chance = (
        80
        + (effective_attribute(attacker, "dexterity") - 10) * 2
        - effective_attribute(target, "dexterity") * 1.5
    )
    if target.is_defending:
        chance -= 15
    return _clamp(5, 95, chance)


def calculate_damage(attacker: Combatant, target: Combatant) -> int:
    base = 10 + effective_attribute(attacker, "strength") * 1.5 + attacker.level * 2
    variation = (random.random() - 0.5) * 0.3
    reduction = effective_attribute(target, "constitution") * 0.8
    return max(1, math.floor(base * (1 + variation) - reduction))


def calculate_crit_chance(attacker: Combatant) -> float:
    chance = (
        5
        + (effective_attribute(attacker, "dexterity") - 10) * 0.5
        + (effective_attribute(attacker, "luck") - 10) * 0.3
    )
    return _clamp(1, 50, chance)


def character_to_combatant(character: PlayerCharacter, is_player: bool = True) -> Combatant:
    return Combatant(
        id=character.id,
        name=character.name,
        is_player=is_player,
        current_hp=character.health.current,
        max_hp=character.health.maximum,
        current_stamina=character.stamina.current,
        max_stamina=character.stamina.maximum,
        current_mana=character.mana.current,
        max_mana=character.mana.maximum,
        attributes=character.attributes.model_copy(),
        level=character.level,
    )


def create_enemy_combatant(template_id: str) -> Combatant:
    """Build an enemy from the registry; unknown ids get generic stats."""
    template = get_enemy_template(template_id)
    if template is None:
        logger.warning(f"Unknown enemy template {template_id!r}; using generic stats")
        return Combatant(
            id=str(uuid4()),
            name="Enemigo Desconocido",
            is_player=False,
            template_id=template_id,
            current_hp=30,
            max_hp=30,
            current_stamina=20,
            max_stamina=20,
            current_mana=0,
            max_mana=0,
            attributes=_GENERIC_ENEMY_ATTRIBUTES.model_copy(),
            level=1,
        )

    return Combatant(
        id=str(uuid4()),
        name=template.name,
        is_player=False,
        template_id=template_id,
        current_hp=template.max_hp,
        max_hp=template.max_hp,
        current_stamina=template.max_stamina,
        max_stamina=template.max_stamina,
        current_mana=template.max_mana,
        max_mana=template.max_mana,
        attributes=template.attributes.model_copy(),
        level=template.level,
    )


class CombatManager:
    def __init__(self) -> None:
        self._combats: dict[str, CombatSession] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_combat(self, player: PlayerCharacter, options: CombatOptions) -> CombatSession:
        player_combatant = character_to_combatant(player)
        enemies = [create_enemy_combatant(eid) for eid in options.enemy_ids]

        turn_order = initiative.calculate_initiative([player_combatant, *enemies], options.is_ambush)
        for combatant in turn_order:
            if not combatant.is_player:
                allies = [e for e in enemies if e.id != combatant.id]
                combatant.intention = enemy_ai.determine_intention(combatant, player_combatant, allies)

        session = CombatSession(turn_order=turn_order)
        self._system_log(session, f"¡Comienza el combate! Ronda {session.round}")
        if turn_order:
            session.phase = "PLAYER_TURN" if turn_order[0].is_player else "ENEMY_TURN"

        self._combats[session.id] = session
        logger.info(
            "Combat %s started: %s vs %s (ambush=%s)",
            session.id, player.name, [e.name for e in enemies], options.is_ambush,
        )
        return session

    def get_combat(self, combat_id: str) -> CombatSession | None:
        return self._combats.get(combat_id)

    def end_combat(self, combat_id: str) -> bool:
        """Drop a session from the table. Returns False if it was unknown."""
        return self._combats.pop(combat_id, None) is not None

    def _active_session(self, combat_id: str) -> CombatSession:
        session = self._combats.get(combat_id)
        if session is None or not session.is_active:
            raise CombatNotFoundError(combat_id)
        return session

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def execute_player_action(
        self, combat_id: str, action: CombatAction,
    ) -> tuple[CombatActionResult, CombatSession]:
        session = self._active_session(combat_id)
        if session.phase != "PLAYER_TURN":
            raise CombatError("No es el turno del jugador", {"phase": session.phase})

        player = self._find_player(session)
        if player is None:
            raise CombatError("Jugador no encontrado en combate")

        result = self._resolve_action(session, action, player)
        self._log_action(session, player, action, result)

        session.actions_remaining -= 1
        if session.is_active and session.actions_remaining <= 0:
            self.advance_turn(session)
        self._check_combat_end(session)
        return result, session

    def execute_enemy_turn(self, combat_id: str) -> tuple[CombatActionResult, CombatSession]:
        session = self._active_session(combat_id)
        if session.phase != "ENEMY_TURN":
            raise CombatError("No es el turno del enemigo", {"phase": session.phase})

        enemy = session.turn_order[session.current_turn_index]
        if enemy.is_player:
            raise CombatError("No hay enemigo en el turno actual")

        player = self._find_player(session)
        if player is None:
            raise CombatError("Jugador no encontrado")

        intention = enemy.intention or enemy_ai.determine_intention(enemy, player, [])
        action = enemy_ai.intention_to_action(enemy, intention)
        result = self._resolve_action(session, action, enemy)
        self._log_action(session, enemy, action, result)

        if session.is_active:
            self.advance_turn(session)
        self._check_combat_end(session)
        return result, session

    def advance_turn(self, session: CombatSession) -> None:
        """Move to the next combatant able to act, ticking the round on wrap."""
        next_index, is_new_round = initiative.get_next_turn(
            session.turn_order, session.current_turn_index,
        )
        if next_index == -1:
            self._check_combat_end(session)
            return

        session.current_turn_index = next_index
        session.actions_remaining = 1

        if is_new_round:
            session.round += 1
            self._process_end_of_round(session)
            self._system_log(session, f"--- Ronda {session.round} ---")
            self._check_combat_end(session)
            if not session.is_active:
                return

            # The tick may have killed whoever was next.
            candidate = session.turn_order[next_index]
            if candidate.current_hp <= 0 or not candidate.can_act:
                next_index, _ = initiative.get_next_turn(session.turn_order, next_index)
                if next_index == -1:
                    self._check_combat_end(session)
                    return
                session.current_turn_index = next_index

        current = session.turn_order[next_index]
        # A defend holds until the defender's own turn comes round again.
        current.is_defending = False
        session.phase = "PLAYER_TURN" if current.is_player else "ENEMY_TURN"

        if not current.is_player:
            player = self._find_player(session)
            if player is not None:
                allies = [c for c in session.turn_order if not c.is_player and c.id != current.id]
                current.intention = enemy_ai.determine_intention(current, player, allies)

    def _process_end_of_round(self, session: CombatSession) -> None:
        for combatant in session.turn_order:
            if combatant.current_hp <= 0:
                continue

            for effect in combatant.status_effects:
                if effect.type == "dot":
                    combatant.current_hp = max(0, combatant.current_hp - effect.magnitude)
                elif effect.type == "hot":
                    combatant.current_hp = min(combatant.max_hp, combatant.current_hp + effect.magnitude)
                effect.duration -= 1

            combatant.status_effects = [e for e in combatant.status_effects if e.duration > 0]
            combatant.current_stamina = min(
                combatant.max_stamina, combatant.current_stamina + STAMINA_REGEN_PER_ROUND,
            )
            if combatant.current_hp <= 0:
                combatant.can_act = False

    def _check_combat_end(self, session: CombatSession) -> None:
        if not session.is_active:
            return
        player = self._find_player(session)
        if player is None or player.current_hp <= 0:
            session.phase = "DEFEAT"
            session.is_active = False
        elif not any(c.current_hp > 0 for c in session.turn_order if not c.is_player):
            session.phase = "VICTORY"
            session.is_active = False
        else:
            return
        logger.info("Combat %s ended: %s after %d rounds", session.id, session.phase, session.round)

    # ------------------------------------------------------------------
    # Action resolution
    # ------------------------------------------------------------------

    def _resolve_action(
        self, session: CombatSession, action: CombatAction, actor: Combatant,
    ) -> CombatActionResult:
        kind = action.type
        if kind == "ATTACK":
            return self._resolve_attack(session, action, actor)
        if kind == "DEFEND":
            return self._resolve_defend(action, actor)
        if kind == "SKILL":
            return self._resolve_skill(session, action, actor)
        if kind == "ITEM":
            return self._resolve_item(action, actor)
        if kind == "FLEE":
            return self._resolve_flee(session, action, actor)
        return CombatActionResult(success=True, action=action, message=f"{actor.name} espera.")

    def _resolve_attack(
        self, session: CombatSession, action: CombatAction, attacker: Combatant,
    ) -> CombatActionResult:
        target = self._find(session, action.target_id)
        if target is None:
            return CombatActionResult(success=False, action=action, message="Objetivo no encontrado")

        hit_chance = calculate_hit_chance(attacker, target)
        if random.random() * 100 > hit_chance:
            return CombatActionResult(
                success=True, action=action, is_miss=True,
                message=f"{attacker.name} falla su ataque contra {target.name}!",
            )

        damage = calculate_damage(attacker, target)
        is_critical = random.random() * 100 < calculate_crit_chance(attacker)
        if is_critical:
            damage *= 2
        if target.is_defending:
            damage = math.floor(damage * 0.5)

        killed = self._apply_damage(target, damage)
        crit_text = " ¡CRÍTICO!" if is_critical else ""
        defend_text = " (defendiendo)" if target.is_defending else ""
        logger.debug(
            "%s hits %s for %d (hit=%.0f%% crit=%s)",
            attacker.name, target.name, damage, hit_chance, is_critical,
        )
        return CombatActionResult(
            success=True, action=action, damage=damage,
            is_critical=is_critical, target_killed=killed,
            message=f"{attacker.name} golpea a {target.name} por {damage} de daño!{crit_text}{defend_text}",
        )

    def _resolve_defend(self, action: CombatAction, actor: Combatant) -> CombatActionResult:
        actor.is_defending = True
        return CombatActionResult(
            success=True, action=action,
            message=f"{actor.name} toma una postura defensiva!",
        )

    def _resolve_skill(
        self, session: CombatSession, action: CombatAction, actor: Combatant,
    ) -> CombatActionResult:
        multiplier = SKILL_DAMAGE_MULTIPLIERS.get(action.skill_id or "")
        if multiplier is None:
            return CombatActionResult(success=False, action=action, message="Skill no reconocida")
        if multiplier == 0:
            return self._resolve_buff_skill(action, actor)

        target = self._find(session, action.target_id)
        if target is None:
            return CombatActionResult(success=False, action=action, message="Objetivo no encontrado")

        damage = math.floor(calculate_damage(actor, target) * multiplier)
        killed = self._apply_damage(target, damage)
        skill_name = SKILL_NAMES.get(action.skill_id or "", action.skill_id)
        return CombatActionResult(
            success=True, action=action, damage=damage, target_killed=killed,
            message=f"{actor.name} usa {skill_name} contra {target.name} por {damage} de daño!",
        )

    def _resolve_buff_skill(self, action: CombatAction, actor: Combatant) -> CombatActionResult:
        if action.skill_id == "skill_howl":
            buff = StatusEffect(
                name="Aullido", type="buff", duration=3, magnitude=5,
                affected_stat="strength", icon="🐺",
            )
            actor.status_effects.append(buff)
            return CombatActionResult(
                success=True, action=action, status_effects_applied=[buff],
                message=f"{actor.name} aulla ferozmente! (+5 Fuerza por 3 turnos)",
            )
        if action.skill_id == "skill_dirty_trick":
            return CombatActionResult(
                success=True, action=action, message=f"{actor.name} usa un truco sucio!",
            )
        return CombatActionResult(success=False, action=action, message="Skill no reconocida")

    def _resolve_item(self, action: CombatAction, actor: Combatant) -> CombatActionResult:
        if action.item_id and "health" in action.item_id:
            healing = HEALTH_POTION_HEALING
            actor.current_hp = min(actor.max_hp, actor.current_hp + healing)
            return CombatActionResult(
                success=True, action=action, healing=healing,
                message=f"{actor.name} usa una poción y recupera {healing} HP!",
            )
        return CombatActionResult(success=False, action=action, message="Item no encontrado")

    def _resolve_flee(
        self, session: CombatSession, action: CombatAction, actor: Combatant,
    ) -> CombatActionResult:
        chance = PLAYER_FLEE_CHANCE if actor.is_player else ENEMY_FLEE_CHANCE
        if random.random() >= chance:
            return CombatActionResult(
                success=False, action=action, fled=False,
                message=f"{actor.name} intenta huir pero no lo consigue!",
            )

        if actor.is_player:
            session.phase = "FLED"
            session.is_active = False
            logger.info("Combat %s ended: player fled", session.id)
        else:
            # A fled enemy counts as defeated.
            actor.current_hp = 0
            actor.can_act = False
        return CombatActionResult(
            success=True, action=action, fled=True,
            message=f"{actor.name} huye del combate!",
        )

    @staticmethod
    def _apply_damage(target: Combatant, damage: int) -> bool:
        target.current_hp = max(0, target.current_hp - damage)
        if target.current_hp <= 0:
            target.can_act = False
            return True
        return False

    # ------------------------------------------------------------------
    # Results and projections
    # ------------------------------------------------------------------

    def get_combat_result(self, combat_id: str) -> CombatResult | None:
        """Outcome, XP and loot of a finished combat; None while it runs."""
        session = self._combats.get(combat_id)
        if session is None or session.is_active:
            return None

        defeated = [c for c in session.turn_order if not c.is_player and c.current_hp <= 0]
        if session.phase == "VICTORY":
            outcome = "victory"
        elif session.phase == "FLED":
            outcome = "fled"
        else:
            outcome = "defeat"

        experience = 0
        gold = 0
        looted: list[LootedItem] = []
        if outcome == "victory":
            for enemy in defeated:
                experience += enemy.level * 20
                if not enemy.template_id:
                    continue
                loot = generate_loot(enemy.template_id)
                gold += loot.gold
                looted.extend(
                    LootedItem(
                        item_id=s.item.id, template_id=s.item.template_id,
                        name=s.item.name, quantity=s.quantity,
                    )
                    for s in loot.items
                )

        elapsed = datetime.now(timezone.utc) - session.started_at
        return CombatResult(
            outcome=outcome,
            rounds=session.round,
            experience_gained=experience,
            gold_gained=gold,
            items_looted=looted,
            enemies_defeated=[DefeatedEnemy(id=e.id, name=e.name, level=e.level) for e in defeated],
            duration_ms=int(elapsed.total_seconds() * 1000),
        )

    def get_combat_ui_state(self, combat_id: str) -> CombatUIState | None:
        session = self._combats.get(combat_id)
        if session is None:
            return None
        player = self._find_player(session)
        if player is None:
            return None

        actions: list[CombatActionType] = ["ATTACK", "DEFEND", "ITEM", "FLEE"]
        if player.current_mana >= SKILL_MANA_COST:
            actions.insert(2, "SKILL")

        current = session.turn_order[session.current_turn_index] if session.turn_order else None
        return CombatUIState(
            combat_id=session.id,
            round=session.round,
            phase=session.phase,
            is_player_turn=session.phase == "PLAYER_TURN",
            player=_combatant_view(player),
            enemies=[_combatant_view(c) for c in session.turn_order if not c.is_player],
            turn_order=[TurnSlot(id=c.id, name=c.name, is_player=c.is_player) for c in session.turn_order],
            current_turn_id=current.id if current else "",
            available_actions=actions,
            combat_log=[
                LogLine(message=e.message, timestamp=e.timestamp.isoformat())
                for e in session.combat_log[-UI_LOG_LINES:]
            ],
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _find(session: CombatSession, combatant_id: str | None) -> Combatant | None:
        if combatant_id is None:
            return None
        return next((c for c in session.turn_order if c.id == combatant_id), None)

    @staticmethod
    def _find_player(session: CombatSession) -> Combatant | None:
        return next((c for c in session.turn_order if c.is_player), None)

    def _log_action(
        self,
        session: CombatSession,
        actor: Combatant,
        action: CombatAction,
        result: CombatActionResult,
    ) -> None:
        target = self._find(session, action.target_id)
        session.combat_log.append(CombatLogEntry(
            round=session.round,
            actor_id=actor.id,
            actor_name=actor.name,
            action=action.type,
            target_id=target.id if target else None,
            target_name=target.name if target else None,
            result=result,
            message=result.message,
        ))

    @staticmethod
    def _system_log(session: CombatSession, message: str) -> None:
        session.combat_log.append(CombatLogEntry(
            round=session.round,
            actor_id="system",
            actor_name="Sistema",
            action="WAIT",
            message=message,
        ))


def _combatant_view(c: Combatant) -> CombatantView:
    intention = None
    if c.intention is not None:
        intention = IntentionView(description=c.intention.description, icon=c.intention.icon)
    return CombatantView(
        id=c.id,
        name=c.name,
        level=c.level,
        current_hp=c.current_hp,
        max_hp=c.max_hp,
        hp_percent=_percent(c.current_hp, c.max_hp),
        current_stamina=c.current_stamina,
        max_stamina=c.max_stamina,
        stamina_percent=_percent(c.current_stamina, c.max_stamina),
        current_mana=c.current_mana,
        max_mana=c.max_mana,
        mana_percent=_percent(c.current_mana, c.max_mana),
        status_effects=[EffectView(name=e.name, icon=e.icon or "✨", duration=e.duration) for e in c.status_effects],
        is_defending=c.is_defending,
        intention=intention,
    )
