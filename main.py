import streamlit as st
import pandas as pd
import numpy as np
from sklearn.preprocessing import StandardScaler
from sklearn.metrics import classification_report
from sklearn.decomposition import PCA
import matplotlib.pyplot as plt
import logging

from harmonic_ssl import HarmonicSSLError, RadialBasis, generate_crescent_moon, predict
from harmonic_ssl.logging_utils import configure_logging

DEMO_TARGET = "class_observed"
DEMO_FEATURES = ["x1", "x2"]
NO_ID = "— номер строки —"


def apply_predictions(df, predictions, target_column):
    df = df.copy()
    unlabeled_rows = np.flatnonzero(df[target_column].isna().to_numpy())
    if len(predictions) != len(unlabeled_rows):
        raise ValueError("Неправильная длина предсказаний")

    df['Предсказанный диагноз'] = df[target_column].astype(object)
    df['Источник'] = 'ручное'
    col_pred = df.columns.get_loc('Предсказанный диагноз')
    col_src = df.columns.get_loc('Источник')
    df.iloc[unlabeled_rows, col_pred] = predictions['pred_class'].to_numpy()
    df.iloc[unlabeled_rows, col_src] = 'предсказание'
    return df


def harmonic_param_widgets():
    k = st.number_input("k (соседи)", value=10, min_value=1, step=1)
    metric = st.selectbox("Метрика расстояния", ["euclidean", "manhattan", "chebyshev", "cosine"])
    weighted = st.checkbox("Взвешенный граф (гауссово ядро)", value=True)
    epsilon = st.number_input("ε (ширина ядра)", value=2.0, min_value=0.01)
    return {
        "k": int(k),
        "metric": metric,
        "weighting": RadialBasis(epsilon) if weighted else None,
        "exact": st.checkbox("Точное решение (иначе метод сопряжённых градиентов)", value=False),
        "cmn": st.checkbox("Нормировка массы классов (CMN)", value=True),
    }


configure_logging(logging.WARNING)

st.set_page_config(page_title="Гармоническая функция: медицинский помощник", layout="wide")
st.title("🩺 Диагностический помощник на графе соседей")

st.markdown("""
Загрузите CSV-файл с медицинскими данными (частично размеченными), укажите, какая колонка отвечает за диагноз — и модель **гармонической функции на графе k ближайших соседей** распространит известные диагнозы на остальные записи 🧠✨
""")

uploaded_file = st.file_uploader("📁 Загрузите ваш .csv файл", type=["csv"])
use_demo = st.checkbox("🌙 Демо-данные (два полумесяца)", key="demo")

df = None
if use_demo:
    df = generate_crescent_moon(n=100, u=70, sigma=1.0, random_state=0)
elif uploaded_file:
    df = pd.read_csv(uploaded_file)

if df is not None:
    st.subheader("📊 Данные")
    st.dataframe(df.head())

    columns = list(df.columns)
    target_index = columns.index(DEMO_TARGET) if use_demo else 0
    target_column = st.selectbox("🎯 Выберите колонку с целевой меткой (диагнозом)", columns, index=target_index)
    possible_features = [col for col in columns if col != target_column]

    if 'feature_columns' not in st.session_state:
        st.session_state.feature_columns = DEMO_FEATURES if use_demo else []

    if st.button("📌 Выбрать все признаки"):
        st.session_state.feature_columns = possible_features

    st.session_state.feature_columns = st.multiselect(
        "🧬 Выберите признаки для анализа",
        possible_features,
        default=[c for c in st.session_state.feature_columns if c in possible_features]
    )
    feature_columns = st.session_state.feature_columns

    id_choice = st.selectbox("🔖 Колонка-идентификатор", [NO_ID] + possible_features)
    id_column = None if id_choice == NO_ID else id_choice

    with st.expander("⚙ Параметры модели"):
        model_params = harmonic_param_widgets()
        scale = st.checkbox("Стандартизировать признаки", value=True)

    if st.button("🚀 Обучить модель", key="train"):
        if not feature_columns:
            st.error("❌ Пожалуйста, выберите хотя бы один признак для обучения.")
        else:
            df_model = df.copy()
            numeric = [c for c in feature_columns if pd.api.types.is_numeric_dtype(df[c])]
            if scale and numeric:
                df_model[numeric] = StandardScaler().fit_transform(df[numeric])

            n_unlabeled = int(df[target_column].isna().sum())
            st.info(f"Обучение на {len(df) - n_unlabeled} размеченных и {n_unlabeled} неразмеченных записях")

            try:
                predictions = predict(df_model, target_column, feature_columns, id_column, **model_params)
            except HarmonicSSLError as exc:
                st.error(f"❌ {exc}")
            else:
                df = apply_predictions(df, predictions, target_column)

                st.success("Модель обучена! Вот предсказания:")
                st.dataframe(df[[target_column, 'Предсказанный диагноз']])
                st.dataframe(predictions)

                if use_demo:
                    truth = df.loc[df['Источник'] == 'предсказание', 'class_truth']
                    st.text(classification_report(truth, predictions['pred_class'].astype(str)))

                if len(numeric) >= 2:
                    with st.expander("📉 Визуализация результатов (PCA)"):
                        pca = PCA(n_components=2)
                        X_vis = pca.fit_transform(df_model[numeric])
                        plt.figure(figsize=(8, 6))
                        is_labeled = (df['Источник'] == 'ручное').to_numpy()
                        is_predicted = ~is_labeled
                        codes = pd.Categorical(df['Предсказанный диагноз'].astype(str)).codes

                        plt.scatter(
                            X_vis[is_labeled, 0], X_vis[is_labeled, 1],
                            c=codes[is_labeled],
                            cmap='viridis', marker='o', alpha=0.6, label='Лейблы'
                        )
                        plt.scatter(
                            X_vis[is_predicted, 0], X_vis[is_predicted, 1],
                            c=codes[is_predicted],
                            cmap='viridis', marker='x', alpha=0.9, label='Предсказания'
                        )
                        plt.xlabel("PCA 1")
                        plt.ylabel("PCA 2")
                        plt.title("Карта предсказаний (PCA)")
                        plt.colorbar(label='Диагноз')
                        plt.legend()
                        st.pyplot(plt.gcf())

                st.download_button("💾 Скачать результат с диагнозами", data=df.to_csv(index=False).encode('utf-8'), file_name="harmonic_function result.csv")
